"""
Central configuration. All storage, database and venue settings in one place.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    # --- Database ---
    database_url: str = Field(
        default="sqlite+aiosqlite:///./kiosk.db",
        alias="DATABASE_URL",
    )

    # --- AWS S3 ---
    aws_access_key_id: str = Field(default="", alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str = Field(default="", alias="AWS_SECRET_ACCESS_KEY")
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    s3_bucket_name: str = Field(default="kiosk-media", alias="S3_BUCKET_NAME")
    # Public URL prefix for stored objects (CloudFront). Empty → bucket URL.
    cdn_base_url: str = Field(default="", alias="CDN_BASE_URL")
    presign_expires_seconds: int = Field(default=60, alias="PRESIGN_EXPIRES_SECONDS")

    # --- Local storage (FF_USE_S3=false) ---
    local_storage_path: str = Field(default="./local_storage", alias="LOCAL_STORAGE_PATH")

    # --- Redis ---
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # --- Venue ---
    venue_timezone: str = Field(default="UTC", alias="VENUE_TIMEZONE")
    # Pins the agenda the kiosk resolves against. Empty → stored pointer.
    active_agenda_id: Optional[str] = Field(default=None, alias="ACTIVE_AGENDA_ID")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    def public_base_url(self) -> str:
        if self.cdn_base_url:
            return self.cdn_base_url.rstrip("/")
        return f"https://{self.s3_bucket_name}.s3.{self.aws_region}.amazonaws.com"


@lru_cache
def get_settings() -> Settings:
    return Settings()
