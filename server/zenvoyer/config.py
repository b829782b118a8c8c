"""Configuration settings for the Zenvoyer API server."""

from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings


def _find_env_file() -> str:
    """Find .env file - check current dir, then parent (repo root)."""
    current = Path.cwd()

    # Check current directory
    if (current / ".env").exists():
        return str(current / ".env")

    # Check parent directory (when running from server/)
    if (current.parent / ".env").exists():
        return str(current.parent / ".env")

    # Check two levels up (when running from server/zenvoyer/)
    if (current.parent.parent / ".env").exists():
        return str(current.parent.parent / ".env")

    # Default to current directory
    return ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server settings
    port: int = 3001
    host: str = "0.0.0.0"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origin: str = "*"
    log_level: str = "INFO"

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    # Response cache
    response_cache_ttl: int = 300  # 5 minutes
    response_cache_max_entries: int = 1000
    response_cache_sweep_interval: int = 60
    response_cache_invalidate_on_write: bool = False

    # Uploads
    upload_dir: str = "./uploads"
    upload_url_prefix: str = "/uploads"
    max_image_size: int = 2 * 1024 * 1024  # 2MB
    max_attachment_size: int = 5 * 1024 * 1024  # 5MB

    # Email
    email_provider: str = "mock"  # mock, sendgrid, resend
    email_from: str = "noreply@zenvoyer.com"
    sendgrid_api_key: str = ""
    resend_api_key: str = ""
    email_send_timeout: float = 10.0
    email_batch_concurrency: int = 5

    # i18n
    default_locale: str = "en"

    class Config:
        env_file = _find_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def upload_path(self) -> Path:
        """Get upload directory as Path object."""
        return Path(self.upload_dir)

    @property
    def locales_dir(self) -> Path:
        """Get bundled locale catalogs directory."""
        return Path(__file__).parent / "locales"

    @property
    def cors_origins(self) -> list[str]:
        """Split comma-separated CORS origins."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
