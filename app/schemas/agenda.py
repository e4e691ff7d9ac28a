"""
Agenda request/response shapes.
"""

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .media import MediaRef

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

Role = Literal["speaker", "moderator", "presenter"]


def normalize_hhmm(v: str) -> str:
    """"8:30" → "08:30". Raises ValueError for anything that is not 24h HH:mm."""
    v = v.strip()
    # Stored zero-padded so string order == time order
    if len(v) == 4 and v[1] == ":":
        v = "0" + v
    if not _HHMM.match(v):
        raise ValueError("time must be HH:mm (24h)")
    return v


class AgendaItemIn(BaseModel):
    id: Optional[str] = None  # keep an existing item's id across edits
    start_time: str
    end_time: str
    name: str = Field(min_length=1)
    title: Optional[str] = None
    company: Optional[str] = None
    role: Role = "speaker"
    photo_url: Optional[str] = None
    info_image: Optional[MediaRef] = None
    is_active: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        return normalize_hhmm(v)

    @model_validator(mode="after")
    def _window_order(self):
        if self.start_time > self.end_time:
            raise ValueError(
                f"start_time {self.start_time} is after end_time {self.end_time}"
            )
        return self


class AgendaIn(BaseModel):
    items: list[AgendaItemIn] = []
    auto_detect_active: bool = True


class AgendaUpdate(BaseModel):
    items: Optional[list[AgendaItemIn]] = None
    auto_detect_active: Optional[bool] = None


class ItemActiveRequest(BaseModel):
    is_active: bool = True


class AgendaItemOut(BaseModel):
    id: str
    position: int = 0
    start_time: str
    end_time: str
    name: str
    title: Optional[str] = None
    company: Optional[str] = None
    role: str = "speaker"
    photo_url: Optional[str] = None
    info_image: Optional[MediaRef] = None
    is_active: bool = False

    @classmethod
    def from_model(cls, item) -> "AgendaItemOut":
        return cls(
            id=item.id,
            position=item.position,
            start_time=item.start_time,
            end_time=item.end_time,
            name=item.name,
            title=item.title,
            company=item.company,
            role=item.role,
            photo_url=item.photo_url,
            info_image=MediaRef.model_validate(item.info_image) if item.info_image else None,
            is_active=item.is_active,
        )


class AgendaOut(BaseModel):
    id: str
    items: list[AgendaItemOut] = []
    auto_detect_active: bool = True
    is_current: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, agenda, is_current: Optional[bool] = None) -> "AgendaOut":
        return cls(
            id=agenda.id,
            items=[AgendaItemOut.from_model(it) for it in agenda.items],
            auto_detect_active=agenda.auto_detect_active,
            is_current=agenda.is_current if is_current is None else is_current,
            created_at=agenda.created_at,
            updated_at=agenda.updated_at,
        )


class ActiveAgendaOut(BaseModel):
    agenda_id: Optional[str] = None
    now: Optional[str] = None  # venue clock, "HH:mm"
    active_item: Optional[AgendaItemOut] = None
    next_item: Optional[AgendaItemOut] = None
