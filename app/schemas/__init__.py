"""
Request/response shapes shared by the services and the API layer.
"""

from .media import (
    MediaRef, SlideImage, Position, Popup,
    ImageAction, PdfAction, IframeAction, SlideshowAction, Action,
    parse_action, owned_keys, validate_payload,
)
from .node import NodeCreate, NodeUpdate, NodeMove, NodeOut, TreeNode
from .agenda import (
    AgendaItemIn, AgendaItemOut, AgendaIn, AgendaUpdate, AgendaOut,
    ItemActiveRequest, ActiveAgendaOut,
)
from .home import HomeVideoIn, HomeVideoOut

__all__ = [
    "MediaRef", "SlideImage", "Position", "Popup",
    "ImageAction", "PdfAction", "IframeAction", "SlideshowAction", "Action",
    "parse_action", "owned_keys", "validate_payload",
    "NodeCreate", "NodeUpdate", "NodeMove", "NodeOut", "TreeNode",
    "AgendaItemIn", "AgendaItemOut", "AgendaIn", "AgendaUpdate", "AgendaOut",
    "ItemActiveRequest", "ActiveAgendaOut",
    "HomeVideoIn", "HomeVideoOut",
]
