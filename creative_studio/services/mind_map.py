from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .element_tree import (
    ElementTreeError,
    OutcomeStatus,
    TreeOutcome,
    parse_timestamp,
    utcnow,
    iter_nodes,
    locate,
    new_element_id,
)


# Marks an argument the caller did not supply.
UNSET = object()


@dataclass
class MindMapNode:
    id: str
    title: str
    description: Optional[str] = None
    children: List["MindMapNode"] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "children": [child.to_dict() for child in self.children],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MindMapNode":
        if not isinstance(data, dict) or not data.get("id"):
            raise ElementTreeError("Mind map entries must be objects with an id.")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=data.get("description"),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
        )


class MindMap:
    """Forest of mind-map nodes. Every operation locates nodes by id."""

    def __init__(self, roots: Optional[Iterable[MindMapNode]] = None) -> None:
        self.roots: List[MindMapNode] = list(roots or [])
        self.dirty = False

    @classmethod
    def from_list(cls, data: Optional[Iterable[Dict[str, Any]]]) -> "MindMap":
        return cls(MindMapNode.from_dict(entry) for entry in data or [])

    def to_list(self) -> List[Dict[str, Any]]:
        return [node.to_dict() for node in self.roots]

    def mark_synced(self) -> None:
        self.dirty = False

    def find(self, node_id: str) -> Optional[MindMapNode]:
        found = locate(self.roots, node_id)
        return found[0] if found else None

    def add(
        self,
        title: str,
        *,
        description: Optional[str] = None,
        parent_id: Optional[str] = None,
        node_id: Optional[str] = None,
    ) -> TreeOutcome:
        node = MindMapNode(id=node_id or new_element_id(), title=title, description=description)
        if any(existing.id == node.id for existing in iter_nodes(self.roots)):
            return TreeOutcome(OutcomeStatus.DUPLICATE_ID)

        if parent_id is None:
            self.roots.append(node)
        else:
            parent = self.find(parent_id)
            if parent is None:
                return TreeOutcome(OutcomeStatus.NOT_FOUND)
            parent.children.append(node)

        self.dirty = True
        return TreeOutcome(OutcomeStatus.OK, node)

    def update(
        self,
        node_id: str,
        *,
        title: Optional[str] = None,
        description: Any = UNSET,
    ) -> TreeOutcome:
        """Change the title and/or description of a node found anywhere.

        A ``None`` title keeps the current one. Leaving ``description`` out keeps
        it as well; passing ``None`` clears it.
        """

        node = self.find(node_id)
        if node is None:
            return TreeOutcome(OutcomeStatus.NOT_FOUND)
        if title is not None:
            node.title = title
        if description is not UNSET:
            node.description = description
        node.updated_at = utcnow()
        self.dirty = True
        return TreeOutcome(OutcomeStatus.OK, node)

    def delete(self, node_id: str) -> TreeOutcome:
        found = locate(self.roots, node_id)
        if found is None:
            return TreeOutcome(OutcomeStatus.NOT_FOUND)
        node, parent = found
        siblings = parent.children if parent is not None else self.roots
        siblings.remove(node)
        self.dirty = True
        return TreeOutcome(OutcomeStatus.OK, node)
