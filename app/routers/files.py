import asyncio
import logging
import os
import time
import uuid
from datetime import datetime
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from app.config import settings
from app.models.user import User
from app.schemas.files import FileUploadResponse
from app.storage import s3_client
from app.utils.auth import get_current_user

router = APIRouter(prefix="/api/files", tags=["files"])

logger = logging.getLogger(__name__)

# Local fallback when S3 is not configured
UPLOAD_DIR = Path(settings.upload_dir)
UPLOAD_DIR.mkdir(exist_ok=True)

MAX_FILE_SIZE = settings.max_file_size_mb * 1024 * 1024


def _owner_prefix(user: User) -> str:
    """Local upload names start with the uploader's id"""
    return f"{user.id.hex}_"


def _resolve_upload(filename: str) -> Path:
    """Path of a locally stored upload, refusing anything outside UPLOAD_DIR"""
    file_path = UPLOAD_DIR / filename

    # Security: Ensure the path is within UPLOAD_DIR (prevent directory traversal)
    try:
        file_path.resolve().relative_to(UPLOAD_DIR.resolve())
    except ValueError:
        raise HTTPException(status_code=403, detail="Access forbidden")

    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return file_path


@router.post("/upload", response_model=FileUploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
):
    """Upload an image attachment"""

    if file.content_type not in settings.allowed_image_types:
        raise HTTPException(status_code=400, detail="File type should be JPEG or PNG")

    content = await file.read()

    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size should be less than {settings.max_file_size_mb}MB",
        )

    filename = Path(file.filename or "upload").name

    if not s3_client.is_storage_available():
        file_extension = Path(filename).suffix
        unique_filename = f"{_owner_prefix(user)}{uuid.uuid4().hex}{file_extension}"
        (UPLOAD_DIR / unique_filename).write_bytes(content)

        file_url = f"{settings.backend_url}/api/files/{unique_filename}"
        logger.info(f"Stored upload {unique_filename} locally for user {user.id}")
        return FileUploadResponse(
            url=file_url,
            pathname=unique_filename,
            contentType=file.content_type,
            size=len(content),
            downloadUrl=file_url,
        )

    key = f"uploads/{user.id}/{int(time.time() * 1000)}-{filename}"
    metadata = {
        "originalName": filename,
        "uploadedBy": str(user.id),
        "uploadedAt": datetime.utcnow().isoformat(),
    }

    try:
        # boto3 is blocking
        url = await asyncio.to_thread(
            s3_client.upload_file, key, content, file.content_type, metadata
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"S3 upload failed for {key}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Upload failed")

    return FileUploadResponse(
        url=url,
        pathname=filename,
        contentType=file.content_type,
        size=len(content),
        downloadUrl=url,
        key=key,
    )


@router.get("/{filename}")
async def get_file(filename: str):
    """Retrieve a locally stored upload"""
    return FileResponse(_resolve_upload(filename))


@router.delete("/{filename}")
async def delete_file(
    filename: str,
    user: User = Depends(get_current_user),
):
    """Delete a locally stored upload owned by the current user"""
    file_path = _resolve_upload(filename)
    if not filename.startswith(_owner_prefix(user)):
        raise HTTPException(status_code=403, detail="Access forbidden")
    os.remove(file_path)

    logger.info(f"User {user.id} deleted upload {filename}")
    return {"success": True, "message": f"File {filename} deleted successfully"}
