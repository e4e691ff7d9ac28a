"""
Event agenda. One document per event day, items stored as rows in schedule order.
"""

from typing import Optional

from sqlalchemy import String, Integer, Boolean, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import KioskBase


class Agenda(KioskBase):
    __tablename__ = "agendas"

    auto_detect_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # The agenda the kiosk resolves against (ACTIVE_AGENDA_ID overrides it)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    items: Mapped[list["AgendaItem"]] = relationship(
        back_populates="agenda",
        cascade="all, delete-orphan",
        order_by="AgendaItem.position",
        lazy="selectin",
    )


class AgendaItem(KioskBase):
    __tablename__ = "agenda_items"

    agenda_id: Mapped[str] = mapped_column(
        String, ForeignKey("agendas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # "08:30"
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)    # "09:00"

    name: Mapped[str] = mapped_column(String, nullable=False)  # speaker name
    title: Mapped[Optional[str]] = mapped_column(String, nullable=True)  # speaker title/position
    company: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(
        String, nullable=False, default="speaker"
    )  # speaker, moderator, presenter
    photo_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    info_image: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    agenda: Mapped["Agenda"] = relationship(back_populates="items")
