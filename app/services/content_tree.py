"""
Content tree manager: structural mutations and media lifecycle of Nodes.

Ordering rule for media: the new reference is committed first, the old
object is deleted afterwards. A failed commit therefore never leaves a node
pointing at a deleted object, and a failed delete only leaks an object
(logged, swept later) instead of undoing the committed change.
"""

import logging
from collections import defaultdict
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import InvalidStateError, NotFoundError, ValidationError
from ..core.locks import TREE_LOCK, get_locks
from ..core.storage import StorageBackend, delete_quietly
from ..models.node import Node
from ..schemas.media import (
    Action,
    SlideshowAction,
    owned_keys,
    parse_action,
    validate_payload,
)
from ..schemas.node import NodeCreate, NodeMove, NodeOut, NodeUpdate, TreeNode

logger = logging.getLogger(__name__)


def node_media_keys(node: Node) -> list[str]:
    """Every object-store key owned by a node record."""
    keys = []
    if node.video and node.video.get("key"):
        keys.append(node.video["key"])
    keys.extend(owned_keys(parse_action(node.action)))
    return keys


def merge_slideshows(old: SlideshowAction, new: SlideshowAction) -> SlideshowAction:
    """
    Keep every existing image and append incoming images not already present.
    Non-image fields (title, size, popup) come from the incoming action.
    """
    known = {img.key for img in old.images}
    images = list(old.images)
    for img in new.images:
        if img.key not in known:
            images.append(img)
            known.add(img.key)
    return new.model_copy(update={"images": images})


def _dump(model) -> Optional[dict]:
    return model.model_dump(mode="json") if model is not None else None


class ContentTreeManager:
    """Tree CRUD over one DB session and one storage backend."""

    def __init__(self, db: AsyncSession, storage: StorageBackend):
        self.db = db
        self.storage = storage
        self._locks = get_locks()

    # ── Reads ────────────────────────────────────────────────────────

    async def get_node(self, node_id: str) -> NodeOut:
        node = await self._load(node_id)
        return NodeOut.from_model(node, await self._child_ids(node.id))

    async def get_tree(self, include_inactive: bool = True) -> list[TreeNode]:
        """All roots with children resolved recursively, siblings in display order."""
        result = await self.db.execute(
            select(Node).order_by(Node.order.asc(), Node.created_at.asc(), Node.id.asc())
        )
        nodes = result.scalars().all()

        by_parent: dict[Optional[str], list[Node]] = defaultdict(list)
        for n in nodes:
            by_parent[n.parent_id].append(n)

        def build(n: Node) -> TreeNode:
            kids = [build(c) for c in by_parent.get(n.id, []) if include_inactive or c.is_active]
            return TreeNode.from_model(n, kids)

        return [build(n) for n in by_parent.get(None, []) if include_inactive or n.is_active]

    # ── Mutations ────────────────────────────────────────────────────

    async def create_node(self, data) -> NodeOut:
        data = validate_payload(NodeCreate, data)
        title = (data.title or "").strip()
        if not title:
            raise ValidationError("title is required")

        async with self._locks.hold(TREE_LOCK):
            if data.parent_id is not None:
                if data.video is None:
                    raise ValidationError("video is required for nodes with a parent")
                await self._load(data.parent_id, what="Parent node")

            node = Node(
                title=title,
                parent_id=data.parent_id,
                order=data.order,
                x=data.position.x,
                y=data.position.y,
                video=_dump(data.video),
                action=_dump(data.action),
                is_active=data.is_active,
            )
            self.db.add(node)
            await self.db.commit()

        logger.info("Node created: %s (%s) parent=%s", node.id, title, node.parent_id)
        return NodeOut.from_model(node, [])

    async def update_node(self, node_id: str, data) -> NodeOut:
        data = validate_payload(NodeUpdate, data)
        fields = data.model_fields_set

        title = (data.title or "").strip()
        if "title" in fields and not title:
            raise ValidationError("title cannot be empty")

        async with self._locks.hold(TREE_LOCK):
            node = await self._load(node_id)
            if "video" in fields and data.video is None and node.parent_id is not None:
                raise ValidationError("video is required for nodes with a parent")

            old_keys = set(node_media_keys(node))

            if "title" in fields:
                node.title = title
            if data.order is not None:
                node.order = data.order
            if data.position is not None:
                node.x, node.y = data.position.x, data.position.y
            if data.is_active is not None:
                node.is_active = data.is_active
            if "video" in fields:
                node.video = _dump(data.video)
            if "action" in fields:
                node.action = _dump(self._next_action(parse_action(node.action), data.action))

            # Commit the new references before touching the old objects
            await self.db.commit()
            stale = old_keys - set(node_media_keys(node))
            await delete_quietly(self.storage, sorted(stale))

        if stale:
            logger.info("Node %s updated, released media: %s", node_id, ", ".join(sorted(stale)))
        return NodeOut.from_model(node, await self._child_ids(node.id))

    async def move_node(self, node_id: str, data) -> NodeOut:
        data = validate_payload(NodeMove, data)
        new_parent_id = data.parent_id

        async with self._locks.hold(TREE_LOCK):
            node = await self._load(node_id)
            if new_parent_id is not None:
                await self._load(new_parent_id, what="Parent node")
                if new_parent_id == node.id or new_parent_id in await self._descendant_ids(node.id):
                    raise ValidationError("cannot move a node under itself or its descendants")
                if not node.video:
                    raise ValidationError("video is required for nodes with a parent")

            node.parent_id = new_parent_id
            await self.db.commit()

        logger.info("Node %s moved under %s", node_id, new_parent_id)
        return NodeOut.from_model(node, await self._child_ids(node.id))

    async def delete_node(self, node_id: str) -> list[str]:
        """
        Delete a node and its whole subtree, then release their media.
        Returns the ids of every removed node, deepest first.
        """
        async with self._locks.hold(TREE_LOCK):
            root = await self._load(node_id)
            subtree = await self._subtree(root)

            keys = []
            for n in subtree:
                keys.extend(node_media_keys(n))

            # Children before parents so no row ever points at a missing parent
            for n in reversed(subtree):
                await self.db.delete(n)
                await self.db.flush()
            await self.db.commit()

            failed = await delete_quietly(self.storage, keys)

        removed = [n.id for n in reversed(subtree)]
        logger.info(
            "Deleted node %s (%d nodes, %d media, %d leaked)",
            node_id, len(removed), len(keys), len(failed),
        )
        return removed

    async def remove_slideshow_image(self, node_id: str, image_id: str) -> NodeOut:
        async with self._locks.hold(TREE_LOCK):
            node = await self._load(node_id)
            action = parse_action(node.action)
            if not isinstance(action, SlideshowAction):
                raise InvalidStateError(f"Node {node_id} does not have a slideshow action")

            image = next((img for img in action.images if img.id == image_id), None)
            if image is None:
                raise NotFoundError(f"Slideshow image {image_id} not found")

            remaining = [img for img in action.images if img.id != image_id]
            node.action = _dump(action.model_copy(update={"images": remaining}))
            await self.db.commit()

            if image.key not in node_media_keys(node):
                await delete_quietly(self.storage, [image.key])

        logger.info("Removed slideshow image %s from node %s", image_id, node_id)
        return NodeOut.from_model(node, await self._child_ids(node.id))

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _next_action(old: Optional[Action], new: Optional[Action]) -> Optional[Action]:
        if isinstance(old, SlideshowAction) and isinstance(new, SlideshowAction):
            return merge_slideshows(old, new)
        return new

    async def _load(self, node_id: str, what: str = "Node") -> Node:
        if not node_id:
            raise NotFoundError(f"{what} not found")
        # Re-read inside the lock; the identity map may hold a stale copy
        node = await self.db.get(Node, node_id, populate_existing=True)
        if node is None:
            raise NotFoundError(f"{what} {node_id} not found")
        return node

    async def _child_ids(self, node_id: str) -> list[str]:
        result = await self.db.execute(
            select(Node.id)
            .where(Node.parent_id == node_id)
            .order_by(Node.order.asc(), Node.created_at.asc(), Node.id.asc())
        )
        return list(result.scalars().all())

    async def _descendant_ids(self, node_id: str) -> set[str]:
        seen: set[str] = set()
        frontier = [node_id]
        while frontier:
            result = await self.db.execute(select(Node.id).where(Node.parent_id.in_(frontier)))
            frontier = [i for i in result.scalars().all() if i not in seen]
            seen.update(frontier)
        return seen

    async def _subtree(self, root: Node) -> list[Node]:
        """Breadth-first: root, its children, their children, ..."""
        nodes = [root]
        frontier = [root.id]
        while frontier:
            result = await self.db.execute(select(Node).where(Node.parent_id.in_(frontier)))
            children = list(result.scalars().all())
            nodes.extend(children)
            frontier = [c.id for c in children]
        return nodes
