"""
S3 storage for uploaded files

Objects are written public-read so the chat UI can show them by URL.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import boto3
from botocore.config import Config

from app.config import settings

logger = logging.getLogger(__name__)


class StorageNotConfiguredError(Exception):
    pass


@dataclass
class StorageConfig:
    aws_region: str
    aws_access_key_id: str
    aws_secret_access_key: str
    aws_s3_bucket: str


def is_storage_available() -> bool:
    return settings.s3_configured


def get_storage_config() -> StorageConfig:
    """
    Read the S3 settings

    Raises:
        StorageNotConfiguredError: If credentials or bucket are missing
    """
    if not settings.s3_configured:
        raise StorageNotConfiguredError(
            "AWS S3 storage is not properly configured. File upload functionality is disabled."
        )
    return StorageConfig(
        aws_region=settings.aws_region or "us-east-1",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        aws_s3_bucket=settings.aws_s3_bucket,
    )


def create_s3_client(config: Optional[StorageConfig] = None):
    """Low-level S3 client using Signature V4"""
    config = config or get_storage_config()
    return boto3.client(
        "s3",
        aws_access_key_id=config.aws_access_key_id,
        aws_secret_access_key=config.aws_secret_access_key,
        region_name=config.aws_region,
        config=Config(signature_version="s3v4"),
    )


def public_url(config: StorageConfig, key: str) -> str:
    return f"https://{config.aws_s3_bucket}.s3.{config.aws_region}.amazonaws.com/{key}"


def upload_file(
    key: str,
    body: bytes,
    content_type: str,
    metadata: Optional[Dict[str, str]] = None,
    s3_client=None,
) -> str:
    """
    Upload bytes to the configured bucket

    Args:
        key: Object key, e.g. ``uploads/<user id>/<ts>-<name>``
        body: File content
        content_type: MIME type stored with the object
        metadata: User metadata stored with the object
        s3_client: Client to use, a new one by default

    Returns:
        Public URL of the object

    Raises:
        botocore.exceptions.ClientError: If S3 rejects the upload
    """
    config = get_storage_config()
    s3_client = s3_client or create_s3_client(config)
    s3_client.put_object(
        Bucket=config.aws_s3_bucket,
        Key=key,
        Body=body,
        ContentType=content_type,
        ACL="public-read",
        Metadata=metadata or {},
    )
    logger.info(f"Uploaded {key} ({len(body)} bytes) to bucket {config.aws_s3_bucket}")
    return public_url(config, key)
