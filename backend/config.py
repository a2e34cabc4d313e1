import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


class Settings:
    """Process configuration, read once from the environment."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        database_name: Optional[str] = None,
        token_secret: Optional[str] = None,
        token_expires_days: Optional[int] = None,
        cloud_name: Optional[str] = None,
        cloudinary_api_key: Optional[str] = None,
        cloudinary_api_secret: Optional[str] = None,
        media_timeout: Optional[int] = None,
        port: Optional[int] = None,
        log_level: Optional[str] = None,
    ):
        explicit_url = database_url or os.getenv("DATABASE_URL")
        self.database_url_configured = bool(explicit_url)
        self.database_url = explicit_url or "mongodb://localhost:27017"
        self.database_name = database_name or os.getenv("DATABASE_NAME") or "gadget_galaxy"
        self.token_secret = token_secret or os.getenv("ACCESS_TOKEN_SECRET")
        self.token_expires_days = token_expires_days or _int_env("TOKEN_EXPIRES_DAYS", 30)
        self.cloud_name = cloud_name or os.getenv("CLOUD_NAME")
        self.cloudinary_api_key = cloudinary_api_key or os.getenv("CLOUDINARY_API_KEY")
        self.cloudinary_api_secret = cloudinary_api_secret or os.getenv("CLOUDINARY_API_SECRET")
        self.media_timeout = media_timeout or _int_env("MEDIA_TIMEOUT", 60)
        self.port = port or _int_env("PORT", 8000)
        self.log_level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
