"""
Central feature flags. One file controls every external dependency.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the system uses a local/no-op fallback. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────────
    use_s3: bool = Field(default=True, alias="FF_USE_S3")
    # ON  → Media goes to AWS S3 via presigned PUT. Needs AWS creds + S3_BUCKET_NAME.
    # OFF → Media saved under LOCAL_STORAGE_PATH through PUT /v1/upload/{key}.

    # ── Realtime ─────────────────────────────────────────────────────
    use_redis: bool = Field(default=True, alias="FF_USE_REDIS")
    # ON  → Redis pub/sub tells kiosk displays to refresh. Needs REDIS_URL.
    # OFF → Notifications silently skipped. Displays fall back to polling.

    # ── Agenda ───────────────────────────────────────────────────────
    force_agenda_auto_detect: bool = Field(default=False, alias="FF_FORCE_AGENDA_AUTO_DETECT")
    # ON  → Time-window detection runs even when an agenda has autoDetectActive=false.
    # OFF → Each agenda's own autoDetectActive flag decides.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
