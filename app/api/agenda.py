"""
Agenda API.

GET    /v1/agenda                                   — List agenda documents
POST   /v1/agenda                                   — Create an agenda
GET    /v1/agenda/active                            — Active + next item right now
GET    /v1/agenda/{agenda_id}                       — One agenda
PUT    /v1/agenda/{agenda_id}                       — Replace items / auto-detect flag
DELETE /v1/agenda/{agenda_id}                       — Delete an agenda
POST   /v1/agenda/{agenda_id}/current               — Make it the kiosk's agenda
POST   /v1/agenda/{agenda_id}/items/{item_id}/active — Manual override toggle
"""

import logging

from fastapi import APIRouter, Depends

from ..core.dependencies import get_agenda_service
from ..schemas.agenda import (
    ActiveAgendaOut,
    AgendaIn,
    AgendaOut,
    AgendaUpdate,
    ItemActiveRequest,
)
from ..services import realtime
from ..services.agenda import AgendaService

logger = logging.getLogger(__name__)

agenda_router = APIRouter(prefix="/agenda", tags=["agenda"])


@agenda_router.get("", response_model=list[AgendaOut])
async def list_agendas(service: AgendaService = Depends(get_agenda_service)):
    return await service.list_agendas()


@agenda_router.post("", response_model=AgendaOut, status_code=201)
async def create_agenda(
    request: AgendaIn,
    service: AgendaService = Depends(get_agenda_service),
):
    agenda = await service.create_agenda(request)
    await realtime.agenda_changed(agenda.id, "created")
    return agenda


@agenda_router.get("/active", response_model=ActiveAgendaOut)
async def active_item(service: AgendaService = Depends(get_agenda_service)):
    """Polled by the kiosk: which session is on now, and which is next."""
    return await service.resolve_current()


@agenda_router.get("/{agenda_id}", response_model=AgendaOut)
async def get_agenda(
    agenda_id: str,
    service: AgendaService = Depends(get_agenda_service),
):
    return await service.get_agenda(agenda_id)


@agenda_router.put("/{agenda_id}", response_model=AgendaOut)
async def update_agenda(
    agenda_id: str,
    request: AgendaUpdate,
    service: AgendaService = Depends(get_agenda_service),
):
    agenda = await service.update_agenda(agenda_id, request)
    await realtime.agenda_changed(agenda_id)
    return agenda


@agenda_router.delete("/{agenda_id}")
async def delete_agenda(
    agenda_id: str,
    service: AgendaService = Depends(get_agenda_service),
):
    await service.delete_agenda(agenda_id)
    await realtime.agenda_changed(agenda_id, "deleted")
    return {"status": "deleted", "id": agenda_id}


@agenda_router.post("/{agenda_id}/current", response_model=AgendaOut)
async def set_current(
    agenda_id: str,
    service: AgendaService = Depends(get_agenda_service),
):
    agenda = await service.set_current_agenda(agenda_id)
    await realtime.agenda_changed(agenda_id, "current")
    return agenda


@agenda_router.post("/{agenda_id}/items/{item_id}/active", response_model=AgendaOut)
async def set_item_active(
    agenda_id: str,
    item_id: str,
    request: ItemActiveRequest,
    service: AgendaService = Depends(get_agenda_service),
):
    """Flag one item as live (clearing all others), or clear it."""
    agenda = await service.set_item_active(agenda_id, item_id, request.is_active)
    await realtime.agenda_changed(agenda_id)
    return agenda
