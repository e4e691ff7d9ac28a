"""
Upload API — presigned uploads for node, agenda and home media.

POST /v1/uploads/presign — Reserve a key, get the URL to PUT the bytes to
PUT  /v1/upload/{key}    — Local-mode upload target (FF_USE_S3=false)
GET  /v1/upload/{key}    — Serve a locally stored object
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel

from ..core.dependencies import get_storage_dep
from ..core.errors import ValidationError
from ..core.storage import LocalStorage, StorageBackend

logger = logging.getLogger(__name__)

upload_router = APIRouter(tags=["upload"])

# ── Size limits ───────────────────────────────────────────────────────

MAX_LOCAL_UPLOAD_SIZE = 500 * 1024 * 1024   # 500 MB (kiosk videos)

# ── Allowed file types ────────────────────────────────────────────────

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}
ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".mov", ".webm", ".m4v"}
ALLOWED_DOC_EXTENSIONS = {".pdf", ".vtt", ".srt"}
ALLOWED_EXTENSIONS = ALLOWED_IMAGE_EXTENSIONS | ALLOWED_VIDEO_EXTENSIONS | ALLOWED_DOC_EXTENSIONS


# ── POST /v1/uploads/presign ─────────────────────────────────────────

class PresignRequest(BaseModel):
    file_name: str
    mime_type: str = ""
    folder: Optional[str] = None  # videos, images, pdfs, popups, subtitles


class PresignResponse(BaseModel):
    upload_url: str
    key: str
    public_url: str


@upload_router.post("/uploads/presign", response_model=PresignResponse)
async def presign_upload(
    request: PresignRequest,
    storage: StorageBackend = Depends(get_storage_dep),
):
    """
    Reserve a storage key for a file.

    The client PUTs the bytes to `upload_url` with the same Content-Type,
    then sends `{key, url: public_url}` as a MediaRef on the node/agenda/home.
    """
    _validate_extension(request.file_name)
    presigned = await storage.presign_upload(
        request.file_name, request.mime_type, request.folder
    )
    return PresignResponse(
        upload_url=presigned.upload_url,
        key=presigned.key,
        public_url=presigned.public_url,
    )


# ── PUT /v1/upload/{key} — local presign target ──────────────────────

@upload_router.put("/upload/{key:path}")
async def put_local_object(
    key: str,
    request: Request,
    storage: StorageBackend = Depends(get_storage_dep),
):
    """Receive the bytes of a locally "presigned" upload."""
    local = _require_local(storage)

    file_bytes = await request.body()
    if len(file_bytes) > MAX_LOCAL_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large (max {MAX_LOCAL_UPLOAD_SIZE // (1024*1024)}MB).",
        )
    if len(file_bytes) == 0:
        raise HTTPException(status_code=400, detail="Empty file")

    local.save(key, file_bytes)
    size_mb = len(file_bytes) / (1024 * 1024)
    logger.info("Uploaded (local): %s (%.1f MB)", key, size_mb)
    return {"key": key, "size": len(file_bytes)}


# ── GET /v1/upload/{key} — serve local object ────────────────────────

@upload_router.get("/upload/{key:path}")
async def serve_local_object(
    key: str,
    storage: StorageBackend = Depends(get_storage_dep),
):
    local = _require_local(storage)
    found = local.read(key)
    if found is None:
        raise HTTPException(status_code=404, detail="File not found")
    content, content_type = found
    return Response(content=content, media_type=content_type)


# ── Helpers ───────────────────────────────────────────────────────────

def _validate_extension(filename: str) -> None:
    """Validate file extension against allowed types."""
    ext = Path(filename).suffix.lower()
    if ext and ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"File type '{ext}' not allowed. "
            f"Supported: images ({', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}), "
            f"videos ({', '.join(sorted(ALLOWED_VIDEO_EXTENSIONS))}), "
            f"documents ({', '.join(sorted(ALLOWED_DOC_EXTENSIONS))})"
        )


def _require_local(storage: StorageBackend) -> LocalStorage:
    if not isinstance(storage, LocalStorage):
        raise HTTPException(status_code=404, detail="Direct file access only in local mode")
    return storage
