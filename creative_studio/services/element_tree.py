"""Folder/file forest backing a project's manuscript tree.

The forest is an ordered list of root elements. Folders own an ordered list
of children, files carry a text blob. Every element is addressed by an id
that is unique across the whole forest, so callers never deal with paths.

Mutations happen in place and report a :class:`TreeOutcome` instead of
raising; an unknown id or a request against the wrong kind of element leaves
the forest untouched and says so through the outcome status.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union


FOLDER = "folder"
FILE = "file"


class OutcomeStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    TYPE_MISMATCH = "type_mismatch"
    DUPLICATE_ID = "duplicate_id"


class ElementTreeError(ValueError):
    """Raised when a stored tree snapshot cannot be decoded."""


def new_element_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Folder:
    id: str
    name: str
    children: List["Element"] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    type = FOLDER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "children": [child.to_dict() for child in self.children],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class File:
    id: str
    name: str
    content: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    type = FILE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


Element = Union[Folder, File]


@dataclass
class TreeOutcome:
    status: OutcomeStatus
    element: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK


def locate(nodes: Sequence[Any], node_id: str, parent: Optional[Any] = None) -> Optional[Tuple[Any, Optional[Any]]]:
    """Depth-first search for ``node_id``; returns ``(node, parent)`` or ``None``.

    Works for any node type exposing ``id`` and, for inner nodes, a
    ``children`` list. Siblings are scanned in order and the search stops at
    the first match.
    """

    for node in nodes:
        if node.id == node_id:
            return node, parent
        children = getattr(node, "children", None)
        if children:
            found = locate(children, node_id, node)
            if found is not None:
                return found
    return None


def iter_nodes(nodes: Iterable[Any]) -> Iterator[Any]:
    for node in nodes:
        yield node
        children = getattr(node, "children", None)
        if children:
            yield from iter_nodes(children)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ElementTreeError(f"Invalid timestamp: {value!r}") from exc
    return utcnow()


def element_from_dict(data: Dict[str, Any]) -> Element:
    if not isinstance(data, dict):
        raise ElementTreeError("Tree entries must be objects.")
    element_id = data.get("id")
    if not element_id:
        raise ElementTreeError("Tree entry is missing its id.")

    kind = data.get("type")
    created_at = parse_timestamp(data.get("createdAt"))
    updated_at = parse_timestamp(data.get("updatedAt"))
    name = str(data.get("name") or "")

    if kind == FOLDER:
        return Folder(
            id=str(element_id),
            name=name,
            children=[element_from_dict(child) for child in data.get("children") or []],
            created_at=created_at,
            updated_at=updated_at,
        )
    if kind == FILE:
        return File(
            id=str(element_id),
            name=name,
            content=str(data.get("content") or ""),
            created_at=created_at,
            updated_at=updated_at,
        )
    raise ElementTreeError(f"Unknown element type: {kind!r}")


class ElementTree:
    """Ordered forest of folders and files owned by a single project."""

    def __init__(self, roots: Optional[Iterable[Element]] = None) -> None:
        self.roots: List[Element] = list(roots or [])
        self.dirty = False

    @classmethod
    def from_list(cls, data: Optional[Iterable[Dict[str, Any]]]) -> "ElementTree":
        return cls(element_from_dict(entry) for entry in data or [])

    def to_list(self) -> List[Dict[str, Any]]:
        return [element.to_dict() for element in self.roots]

    def mark_synced(self) -> None:
        self.dirty = False

    def walk(self) -> Iterator[Element]:
        return iter_nodes(self.roots)

    def find(self, element_id: str) -> Optional[Element]:
        found = locate(self.roots, element_id)
        return found[0] if found else None

    def parent_of(self, element_id: str) -> Optional[Folder]:
        found = locate(self.roots, element_id)
        return found[1] if found else None

    def insert(self, parent_id: Optional[str], element: Element) -> TreeOutcome:
        existing_ids = {node.id for node in self.walk()}
        incoming_ids = [node.id for node in iter_nodes([element])]
        if len(set(incoming_ids)) != len(incoming_ids) or existing_ids.intersection(incoming_ids):
            return TreeOutcome(OutcomeStatus.DUPLICATE_ID)

        if parent_id is None:
            self.roots.append(element)
        else:
            found = locate(self.roots, parent_id)
            if found is None:
                return TreeOutcome(OutcomeStatus.NOT_FOUND)
            parent = found[0]
            if not isinstance(parent, Folder):
                return TreeOutcome(OutcomeStatus.TYPE_MISMATCH, parent)
            parent.children.append(element)

        self.dirty = True
        return TreeOutcome(OutcomeStatus.OK, element)

    def create(
        self,
        parent_id: Optional[str],
        name: str,
        is_folder: bool,
        *,
        element_id: Optional[str] = None,
    ) -> TreeOutcome:
        element_id = element_id or new_element_id()
        element: Element = Folder(id=element_id, name=name) if is_folder else File(id=element_id, name=name)
        return self.insert(parent_id, element)

    def rename(self, element_id: str, new_name: str) -> TreeOutcome:
        element = self.find(element_id)
        if element is None:
            return TreeOutcome(OutcomeStatus.NOT_FOUND)
        element.name = new_name
        element.updated_at = utcnow()
        self.dirty = True
        return TreeOutcome(OutcomeStatus.OK, element)

    def update_content(self, file_id: str, content: str) -> TreeOutcome:
        element = self.find(file_id)
        if element is None:
            return TreeOutcome(OutcomeStatus.NOT_FOUND)
        if not isinstance(element, File):
            return TreeOutcome(OutcomeStatus.TYPE_MISMATCH, element)
        element.content = content
        element.updated_at = utcnow()
        self.dirty = True
        return TreeOutcome(OutcomeStatus.OK, element)

    def delete(self, element_id: str, parent_id: Optional[str] = None) -> TreeOutcome:
        # The parent is taken at the caller's word; no global fallback search.
        if parent_id is None:
            siblings = self.roots
        else:
            parent = self.find(parent_id)
            if parent is None:
                return TreeOutcome(OutcomeStatus.NOT_FOUND)
            if not isinstance(parent, Folder):
                return TreeOutcome(OutcomeStatus.TYPE_MISMATCH, parent)
            siblings = parent.children

        for index, child in enumerate(siblings):
            if child.id == element_id:
                removed = siblings.pop(index)
                self.dirty = True
                return TreeOutcome(OutcomeStatus.OK, removed)
        return TreeOutcome(OutcomeStatus.NOT_FOUND)

    def word_count(self) -> int:
        return sum(
            len(_WORD_PATTERN.findall(element.content))
            for element in self.walk()
            if isinstance(element, File)
        )


_WORD_PATTERN = re.compile(r"\b\w+[\w'-]*\b")
