import logging

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # App settings
    app_name: str = "DarvayaAI Chat Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Security
    secret_key: str
    session_cookie_secure: bool = False  # Set to True in production with HTTPS

    # Database (DATABASE_URL or POSTGRES_URL)
    database_url: str = Field(validation_alias=AliasChoices("database_url", "postgres_url"))

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""

    # Frontend
    frontend_url: str = "http://localhost:3000"

    # Backend URL (for locally stored uploads)
    backend_url: str = ""

    # OpenRouter gateway (OpenAI-compatible)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_site_url: str = "https://darvayaai-production.up.railway.app"
    openrouter_app_name: str = "DarvayaAI"

    # AWS S3 storage
    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_s3_bucket: str = ""
    upload_dir: str = "uploads"

    # Rate Limiting (messages per 24 hours)
    guest_message_limit: int = 20
    regular_user_message_limit: int = 100

    # File Upload Settings
    max_file_size_mb: int = 5
    allowed_image_types: list[str] = ["image/jpeg", "image/png"]

    # Model Configuration (keys into the OpenRouter model mapping)
    default_chat_model: str = "chat-model"
    default_title_model: str = "title-model"
    default_artifact_model: str = "artifact-model"

    # Tool loop
    max_tool_steps: int = 5

    # Gemini Flash Lite rollout
    gemini_flash_lite_enabled: bool = True
    gemini_traffic_percentage: int = 5

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, value: str) -> str:
        """Point plain Postgres URLs at the asyncpg driver"""
        if value.startswith("postgres://"):
            return "postgresql+asyncpg://" + value[len("postgres://"):]
        if value.startswith("postgresql://"):
            return "postgresql+asyncpg://" + value[len("postgresql://"):]
        return value

    @property
    def s3_configured(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key and self.aws_s3_bucket)


def log_configuration_warnings(config: "Settings") -> list[str]:
    """Log optional settings that are missing and return them"""
    warnings = []
    if not config.openrouter_api_key:
        warnings.append("OPENROUTER_API_KEY - chat completions will fail")
    if not config.s3_configured:
        warnings.append("AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY/AWS_S3_BUCKET - uploads stored locally")
    if not config.google_client_id:
        warnings.append("GOOGLE_CLIENT_ID - Google sign-in disabled")

    for warning in warnings:
        logger.warning(f"Missing optional setting: {warning}")
    if not warnings:
        logger.info("Environment validation passed")
    return warnings


settings = Settings()
