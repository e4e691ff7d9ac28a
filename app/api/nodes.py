"""
Content tree API.

GET    /v1/nodes/tree                        — Whole forest, children resolved
POST   /v1/nodes                             — Create a node (root or child)
GET    /v1/nodes/{node_id}                   — One node with child ids
PUT    /v1/nodes/{node_id}                   — Partial update (media replaced safely)
POST   /v1/nodes/{node_id}/move              — Re-parent a node
DELETE /v1/nodes/{node_id}                   — Delete node, subtree and media
DELETE /v1/nodes/{node_id}/slideshow/{image} — Remove one slideshow image
"""

import logging

from fastapi import APIRouter, Depends

from ..core.dependencies import get_tree_manager
from ..schemas.node import NodeCreate, NodeMove, NodeOut, NodeUpdate, TreeNode
from ..services import realtime
from ..services.content_tree import ContentTreeManager

logger = logging.getLogger(__name__)

nodes_router = APIRouter(prefix="/nodes", tags=["nodes"])


@nodes_router.get("/tree", response_model=list[TreeNode])
async def get_tree(
    include_inactive: bool = True,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    """Return every root node with its descendants nested in display order."""
    return await manager.get_tree(include_inactive=include_inactive)


@nodes_router.post("", response_model=NodeOut, status_code=201)
async def create_node(
    request: NodeCreate,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    node = await manager.create_node(request)
    await realtime.tree_changed(node.id, "created")
    return node


@nodes_router.get("/{node_id}", response_model=NodeOut)
async def get_node(
    node_id: str,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    return await manager.get_node(node_id)


@nodes_router.put("/{node_id}", response_model=NodeOut)
async def update_node(
    node_id: str,
    request: NodeUpdate,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    """
    Update any of title, order, position, video, action, is_active.

    A replaced video or action is deleted from storage after the new one is
    saved. Sending a slideshow to a slideshow node appends its images.
    """
    node = await manager.update_node(node_id, request)
    await realtime.tree_changed(node_id, "updated")
    return node


@nodes_router.post("/{node_id}/move", response_model=NodeOut)
async def move_node(
    node_id: str,
    request: NodeMove,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    node = await manager.move_node(node_id, request)
    await realtime.tree_changed(node_id, "moved")
    return node


@nodes_router.delete("/{node_id}")
async def delete_node(
    node_id: str,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    """Delete a node, every descendant, and all media they own."""
    removed = await manager.delete_node(node_id)
    await realtime.tree_changed(node_id, "deleted")
    return {"status": "deleted", "id": node_id, "removed": removed}


@nodes_router.delete("/{node_id}/slideshow/{image_id}", response_model=NodeOut)
async def remove_slideshow_image(
    node_id: str,
    image_id: str,
    manager: ContentTreeManager = Depends(get_tree_manager),
):
    node = await manager.remove_slideshow_image(node_id, image_id)
    await realtime.tree_changed(node_id, "updated")
    return node
