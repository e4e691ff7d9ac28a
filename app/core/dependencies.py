"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db as _get_db
from .storage import StorageBackend, get_storage as _get_storage


async def get_db() -> AsyncSession:
    """Yields an async DB session per request."""
    async for session in _get_db():
        yield session


def get_storage_dep() -> StorageBackend:
    """Returns the active storage backend (S3 or local)."""
    return _get_storage()


def get_tree_manager(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage_dep),
):
    from ..services.content_tree import ContentTreeManager
    return ContentTreeManager(db, storage)


def get_agenda_service(db: AsyncSession = Depends(get_db)):
    from ..services.agenda import AgendaService
    return AgendaService(db)
