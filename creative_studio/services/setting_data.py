"""Helpers for the ``setting_data`` document attached to each project."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List


_TRAIT_SPLIT = re.compile(r"[,;\n]+")


def build_character_item(character: Any) -> Dict[str, Any]:
    """Convert a character row into the setting-data character shape."""

    traits: List[str] = []
    if getattr(character, "personality", None):
        traits.append(character.personality)
    if getattr(character, "appearance", None):
        traits.extend(part.strip() for part in _TRAIT_SPLIT.split(str(character.appearance)) if part.strip())
    if getattr(character, "goals", None):
        traits.append(character.goals)

    return {
        "name": getattr(character, "name", None) or "Unnamed",
        "aliases": list(getattr(character, "aliases", None) or []),
        "description": getattr(character, "description", None) or None,
        "traits": traits,
        "relationships": dict(getattr(character, "relationships", None) or {}),
        "role": getattr(character, "role", None) or None,
    }


def build_setting_data(characters: Iterable[Any]) -> Dict[str, Any]:
    items = [build_character_item(character) for character in characters]
    return {
        "characters": items,
        "relations": [],
        "name_mapping": {item["name"]: item["aliases"] for item in items},
        "world": [],
        "plot_threads": [],
    }
