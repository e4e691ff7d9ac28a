"""
Home video API.

GET    /v1/home — Current home video (null when unset)
PUT    /v1/home — Replace video/subtitle; old media deleted after save
DELETE /v1/home — Remove home video and its media
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, get_storage_dep
from ..core.storage import StorageBackend
from ..schemas.home import HomeVideoIn, HomeVideoOut
from ..services import home as home_service
from ..services import realtime

logger = logging.getLogger(__name__)

home_router = APIRouter(prefix="/home", tags=["home"])


@home_router.get("", response_model=Optional[HomeVideoOut])
async def get_home(db: AsyncSession = Depends(get_db)):
    return await home_service.get_home(db)


@home_router.put("", response_model=HomeVideoOut)
async def set_home(
    request: HomeVideoIn,
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage_dep),
):
    home = await home_service.set_home(db, storage, request)
    await realtime.home_changed()
    return home


@home_router.delete("")
async def delete_home(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage_dep),
):
    deleted = await home_service.delete_home(db, storage)
    if deleted:
        await realtime.home_changed()
        return {"status": "deleted"}
    return {"status": "noop", "message": "No home video exists"}
