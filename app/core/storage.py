"""
Object store abstraction. S3 OR local filesystem. Controlled by FF_USE_S3 flag.

Uploads never pass through the services: callers ask for a presigned URL,
PUT the bytes there themselves, then hand the returned key/URL back as a
MediaRef. The services only ever delete.
"""

import logging
import mimetypes
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import get_settings
from .errors import KioskError, StorageError, ValidationError
from .flags import get_flags

logger = logging.getLogger(__name__)

UPLOAD_FOLDERS = {"videos", "images", "pdfs", "popups", "subtitles"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class PresignedUpload:
    upload_url: str
    key: str
    public_url: str


class StorageBackend(ABC):
    @abstractmethod
    async def presign_upload(
        self, file_name: str, mime_type: str, folder: Optional[str] = None
    ) -> PresignedUpload:
        """Reserve a key and return where to PUT the bytes."""
        ...

    @abstractmethod
    async def delete(self, key: Optional[str]) -> None:
        """Delete an object. Empty keys and missing objects are not errors."""
        ...


class S3Storage(StorageBackend):
    def __init__(self):
        self._client = None

    def _get_client(self):
        if self._client is None:
            import boto3

            settings = get_settings()
            kwargs = {"region_name": settings.aws_region}
            if settings.aws_access_key_id:
                kwargs["aws_access_key_id"] = settings.aws_access_key_id
                kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
            self._client = boto3.client("s3", **kwargs)
        return self._client

    async def presign_upload(
        self, file_name: str, mime_type: str, folder: Optional[str] = None
    ) -> PresignedUpload:
        from botocore.exceptions import BotoCoreError, ClientError

        settings = get_settings()
        key = build_key(file_name, mime_type, folder)

        try:
            upload_url = self._get_client().generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": settings.s3_bucket_name,
                    "Key": key,
                    "ContentType": mime_type or _guess_content_type(file_name),
                },
                ExpiresIn=settings.presign_expires_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not presign upload for {file_name}: {e}") from e

        logger.info("Presigned S3 upload: %s", key)
        return PresignedUpload(
            upload_url=upload_url,
            key=key,
            public_url=f"{settings.public_base_url()}/{key}",
        )

    async def delete(self, key: Optional[str]) -> None:
        if not key:
            return
        from botocore.exceptions import BotoCoreError, ClientError

        settings = get_settings()
        try:
            # S3 answers 204 for keys that are already gone.
            self._get_client().delete_object(Bucket=settings.s3_bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not delete {key}: {e}") from e
        logger.info("Deleted from S3: %s", key)


class LocalStorage(StorageBackend):
    """Development backend. Uploads land on this service's PUT /v1/upload/{key}."""

    def __init__(self, base_path: str = "./local_storage"):
        self.base_path = Path(base_path)

    async def presign_upload(
        self, file_name: str, mime_type: str, folder: Optional[str] = None
    ) -> PresignedUpload:
        key = build_key(file_name, mime_type, folder)
        url = f"/v1/upload/{key}"
        return PresignedUpload(upload_url=url, key=key, public_url=url)

    async def delete(self, key: Optional[str]) -> None:
        if not key:
            return
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {key}: {e}") from e
        logger.info("Deleted locally: %s", key)

    def path_for(self, key: str) -> Path:
        if not key or key.startswith("/") or ".." in Path(key).parts:
            raise ValidationError(f"Invalid storage key: {key!r}")
        return self.base_path / key

    def save(self, key: str, file_bytes: bytes) -> Path:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(file_bytes)
        logger.info("Saved locally: %s (%d bytes)", key, len(file_bytes))
        return path

    def read(self, key: str) -> Optional[tuple[bytes, str]]:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return path.read_bytes(), _guess_content_type(path.name)


def get_storage() -> StorageBackend:
    """Return the active storage backend based on feature flags."""
    flags = get_flags()
    if flags.use_s3:
        return S3Storage()
    return LocalStorage(get_settings().local_storage_path)


async def delete_quietly(storage: StorageBackend, keys: Iterable[Optional[str]]) -> list[str]:
    """
    Delete media that a committed mutation made unreachable.

    Failures are logged and skipped: the record change already happened and
    the object can be swept later. Returns the keys that could not be deleted.
    """
    failed = []
    for key in keys:
        if not key:
            continue
        try:
            await storage.delete(key)
        except KioskError as e:
            logger.warning("Leaked object %s: %s", key, e)
            failed.append(key)
    return failed


def build_key(file_name: str, mime_type: str, folder: Optional[str] = None) -> str:
    """`{folder}/{epoch_ms}-{safe_name}`; folder derived from MIME type when omitted."""
    if not file_name or not file_name.strip():
        raise ValidationError("file_name is required")

    folder = folder or folder_for_mime(mime_type)
    if folder not in UPLOAD_FOLDERS:
        raise ValidationError(
            f"Unknown upload folder '{folder}'. Allowed: {', '.join(sorted(UPLOAD_FOLDERS))}"
        )

    safe = _UNSAFE_CHARS.sub("-", Path(file_name.strip()).name).strip("-.") or "upload"
    return f"{folder}/{int(time.time() * 1000)}-{safe}"


def folder_for_mime(mime_type: str) -> str:
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("video/"):
        return "videos"
    if mime_type == "application/pdf":
        return "pdfs"
    if mime_type in ("text/vtt", "application/x-subrip"):
        return "subtitles"
    return "images"


def _guess_content_type(filename: str) -> str:
    ct, _ = mimetypes.guess_type(filename)
    return ct or "application/octet-stream"
