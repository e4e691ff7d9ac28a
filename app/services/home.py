"""
Home (attract loop) video: a singleton with replace-then-delete-old media.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.locks import HOME_LOCK, get_locks
from ..core.storage import StorageBackend, delete_quietly
from ..models.home import HomeVideo
from ..schemas.home import HomeVideoIn, HomeVideoOut
from ..schemas.media import validate_payload

logger = logging.getLogger(__name__)


def _keys(home: HomeVideo) -> set[str]:
    return {ref["key"] for ref in (home.video, home.subtitle) if ref and ref.get("key")}


async def _load_all(db: AsyncSession) -> list[HomeVideo]:
    result = await db.execute(
        select(HomeVideo)
        .order_by(HomeVideo.created_at.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_home(db: AsyncSession) -> Optional[HomeVideoOut]:
    rows = await _load_all(db)
    return HomeVideoOut.from_model(rows[0]) if rows else None


async def set_home(db: AsyncSession, storage: StorageBackend, data) -> HomeVideoOut:
    """Store the new video (and subtitle), then delete whatever they replaced."""
    data = validate_payload(HomeVideoIn, data)

    async with get_locks().hold(HOME_LOCK):
        rows = await _load_all(db)
        old_keys: set[str] = set()
        for row in rows:
            old_keys |= _keys(row)

        if rows:
            home = rows[0]
            # Stray duplicates from older deployments collapse into one row
            for extra in rows[1:]:
                await db.delete(extra)
        else:
            home = HomeVideo()
            db.add(home)

        home.video = data.video.model_dump(mode="json")
        home.subtitle = data.subtitle.model_dump(mode="json") if data.subtitle else None
        await db.commit()

        await delete_quietly(storage, sorted(old_keys - _keys(home)))

    logger.info("Home video set: %s", home.video["key"])
    return HomeVideoOut.from_model(home)


async def delete_home(db: AsyncSession, storage: StorageBackend) -> bool:
    """Remove the home video. Returns False when there was none."""
    async with get_locks().hold(HOME_LOCK):
        rows = await _load_all(db)
        if not rows:
            return False

        keys: set[str] = set()
        for row in rows:
            keys |= _keys(row)
            await db.delete(row)
        await db.commit()

        await delete_quietly(storage, sorted(keys))

    logger.info("Home video deleted")
    return True
