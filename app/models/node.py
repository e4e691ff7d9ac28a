"""
Content tree nodes.

Only `parent_id` is stored. A node's children are whatever rows point at it,
so the children view can never disagree with the parent links.
"""

from typing import Optional

from sqlalchemy import String, Integer, Float, Boolean, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import KioskBase


class Node(KioskBase):
    __tablename__ = "nodes"

    title: Mapped[str] = mapped_column(String, nullable=False)
    parent_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("nodes.id"), nullable=True, index=True
    )
    order: Mapped[int] = mapped_column("sort_order", Integer, nullable=False, default=0)

    # Screen position in percent
    x: Mapped[float] = mapped_column(Float, nullable=False, default=50)
    y: Mapped[float] = mapped_column(Float, nullable=False, default=50)

    video: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    # {"key": "videos/171...-lobby.mp4", "url": "https://cdn/...", "duration": 42.0}

    action: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    # Serialized Action variant, discriminated by "type":
    # image | pdf  → {"media": {...}}
    # iframe       → {"external_url": "..."}
    # slideshow    → {"images": [{"id": ..., "key": ..., "url": ...}]}
    # plus title, width, height and an optional popup on every variant.

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
