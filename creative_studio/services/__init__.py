"""Service layer: the project trees and the AI collaborators."""

from __future__ import annotations

from .element_tree import (  # noqa: F401
    ElementTree,
    File,
    Folder,
    OutcomeStatus,
    TreeOutcome,
    new_element_id,
)
from .mind_map import MindMap, MindMapNode  # noqa: F401

__all__ = [
    "ElementTree",
    "File",
    "Folder",
    "MindMap",
    "MindMapNode",
    "OutcomeStatus",
    "TreeOutcome",
    "new_element_id",
]
