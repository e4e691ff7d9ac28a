"""
All database models. Imported here so Base.metadata sees them for create_all().
"""

from .base import KioskBase
from .node import Node
from .agenda import Agenda, AgendaItem
from .home import HomeVideo

__all__ = [
    "KioskBase",
    "Node",
    "Agenda", "AgendaItem",
    "HomeVideo",
]
