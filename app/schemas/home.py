"""
Home video shapes.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .media import MediaRef


class HomeVideoIn(BaseModel):
    video: MediaRef
    subtitle: Optional[MediaRef] = None


class HomeVideoOut(BaseModel):
    id: str
    video: MediaRef
    subtitle: Optional[MediaRef] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, home) -> "HomeVideoOut":
        return cls(
            id=home.id,
            video=MediaRef.model_validate(home.video),
            subtitle=MediaRef.model_validate(home.subtitle) if home.subtitle else None,
            updated_at=home.updated_at,
        )
