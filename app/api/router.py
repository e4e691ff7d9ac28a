"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter

router = APIRouter()


# ── Health ───────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "kiosk"}


# ── V1 routes ────────────────────────────────────────────────────────

from .nodes import nodes_router
from .agenda import agenda_router
from .home import home_router
from .upload import upload_router

router.include_router(nodes_router, prefix="/v1")
router.include_router(agenda_router, prefix="/v1")
router.include_router(home_router, prefix="/v1")
router.include_router(upload_router, prefix="/v1")
