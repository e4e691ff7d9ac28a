"""Shared test utilities for the kiosk service tests."""

from __future__ import annotations

from typing import Optional

from app.core.errors import StorageError
from app.core.storage import PresignedUpload, StorageBackend, build_key


class RecordingStorage(StorageBackend):
    """Object store double: records deletes, fails on demand."""

    def __init__(self):
        self.deleted: list[str] = []
        self.fail_keys: set[str] = set()
        self.fail_presign = False
        self.on_delete = None

    async def presign_upload(self, file_name, mime_type, folder=None):
        if self.fail_presign:
            raise StorageError("presign unavailable")
        key = build_key(file_name, mime_type, folder)
        return PresignedUpload(
            upload_url=f"https://upload.test/{key}?sig=abc",
            key=key,
            public_url=f"https://cdn.test/{key}",
        )

    async def delete(self, key: Optional[str]) -> None:
        if not key:
            return
        if self.on_delete is not None:
            await self.on_delete(key)
        if key in self.fail_keys:
            raise StorageError(f"cannot delete {key}")
        self.deleted.append(key)


def media(name: str, **extra) -> dict:
    """MediaRef payload for an object called `name`."""
    return {"key": f"media/{name}", "url": f"https://cdn.test/media/{name}", **extra}


def item(start: str, end: str, name: str = "Speaker", **extra) -> dict:
    """AgendaItemIn payload."""
    return {"start_time": start, "end_time": end, "name": name, **extra}
