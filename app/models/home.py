"""
Home (attract loop) video. At most one row.
"""

from typing import Optional

from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import KioskBase


class HomeVideo(KioskBase):
    __tablename__ = "home_videos"

    video: Mapped[dict] = mapped_column(JSON, nullable=False)
    subtitle: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
