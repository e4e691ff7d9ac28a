"""
Realtime notifications. Thin wrapper around core.redis.
Tells kiosk displays which part of their state to re-fetch.
"""

from typing import Optional

from ..core import redis as _redis


# ── Content tree ─────────────────────────────────────────────────────

async def tree_changed(node_id: Optional[str] = None, action: str = "updated"):
    await _redis.notify_displays("tree.changed", {"node_id": node_id, "action": action})


# ── Agenda ───────────────────────────────────────────────────────────

async def agenda_changed(agenda_id: str, action: str = "updated"):
    await _redis.notify_displays("agenda.changed", {"agenda_id": agenda_id, "action": action})


# ── Home video ───────────────────────────────────────────────────────

async def home_changed():
    await _redis.notify_displays("home.changed")
