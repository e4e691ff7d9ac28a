"""
Node request/response shapes.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .media import Action, MediaRef, Position, parse_action


class NodeCreate(BaseModel):
    title: str = ""
    parent_id: Optional[str] = None
    order: int = 0
    position: Position = Field(default_factory=Position)
    video: Optional[MediaRef] = None
    action: Optional[Action] = None
    is_active: bool = True


class NodeUpdate(BaseModel):
    """Partial update. Fields left out stay untouched; an explicit null clears."""

    title: Optional[str] = None
    order: Optional[int] = None
    position: Optional[Position] = None
    video: Optional[MediaRef] = None
    action: Optional[Action] = None
    is_active: Optional[bool] = None


class NodeMove(BaseModel):
    parent_id: Optional[str] = None


class NodeOut(BaseModel):
    id: str
    title: str
    parent_id: Optional[str] = None
    order: int = 0
    position: Position
    video: Optional[MediaRef] = None
    action: Optional[Action] = None
    is_active: bool = True
    children: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, node, children: Optional[list] = None) -> "NodeOut":
        return cls(
            id=node.id,
            title=node.title,
            parent_id=node.parent_id,
            order=node.order or 0,
            position=Position(x=node.x, y=node.y),
            video=MediaRef.model_validate(node.video) if node.video else None,
            action=parse_action(node.action),
            is_active=node.is_active,
            children=children or [],
            created_at=node.created_at,
            updated_at=node.updated_at,
        )


class TreeNode(NodeOut):
    """A node with its children resolved to full nodes, recursively."""

    children: list["TreeNode"] = []


TreeNode.model_rebuild()
