"""Chat assistant backed by the OpenAI chat completions API.

The assistant sees a system prompt rendered from the project aggregate
(characters, extracted setting data, scene timeline and an excerpt of the
world-setting text) followed by the running conversation.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import openai
from flask import current_app


MAX_SCENE_EVENTS = 30
MAX_WORLD_SETTING_CHARS = 3000
ALLOWED_ROLES = ("user", "assistant")


class ChatAssistantError(RuntimeError):
    """Raised when the chat assistant cannot produce a reply."""


@dataclass
class ChatReply:
    reply: str
    model: str


def build_system_prompt(ctx: Mapping[str, Any]) -> str:
    lines: List[str] = [
        "You are the AI assistant of a creative writing studio, helping the user write their novel or story.",
        "Below is the setting data of the current project. Use it when answering.",
        "",
    ]

    if ctx.get("project_title"):
        lines.append(f"## Project: {ctx['project_title']}")
        if ctx.get("project_description"):
            lines.append(f"Description: {ctx['project_description']}")
        lines.append("")

    setting_data = ctx.get("setting_data")
    if not isinstance(setting_data, dict):
        setting_data = {}

    characters = setting_data.get("characters") or ctx.get("characters") or []
    if characters:
        lines.append("## Characters")
        for character in characters:
            if isinstance(character, str):
                lines.append(f"- **{character}**")
                continue
            if not isinstance(character, dict):
                continue
            traits = character.get("traits")
            if isinstance(traits, list):
                traits_text = ", ".join(str(trait) for trait in traits)
            else:
                traits_text = character.get("appearance") or ""
            line = (
                f"- **{character.get('name')}** ({character.get('role') or 'unknown role'}): "
                f"{character.get('description') or 'no description'}"
            )
            if traits_text:
                line += f" | Traits: {traits_text}"
            lines.append(line)
        lines.append("")

    world = setting_data.get("world") or []
    if world:
        lines.append("## World")
        for entry in world:
            if isinstance(entry, str):
                lines.append(f"- {entry}")
            elif isinstance(entry, dict) and entry.get("name"):
                lines.append(f"- {entry['name']}: {entry.get('description') or ''}")
        lines.append("")

    relations = setting_data.get("relations") or []
    if relations:
        lines.append("## Relationships")
        for relation in relations:
            if isinstance(relation, dict) and relation.get("from") and relation.get("to"):
                lines.append(f"- {relation['from']} → {relation['to']}: {relation.get('type') or ''}")
        lines.append("")

    plot_threads = setting_data.get("plot_threads") or []
    if plot_threads:
        lines.append("## Plot threads")
        for thread in plot_threads:
            if isinstance(thread, str):
                lines.append(f"- {thread}")
            elif isinstance(thread, dict):
                lines.append(f"- {thread.get('description') or json.dumps(thread, ensure_ascii=False)}")
        lines.append("")

    events = ctx.get("scene_events") or []
    if events:
        lines.append("## Storyboard (scene timeline)")
        for event in events[:MAX_SCENE_EVENTS]:
            lines.append(
                f"- [{event.get('timestamp') or 0} min] **{event.get('title')}**: {event.get('description') or ''}"
            )
        lines.append("")

    world_setting = ctx.get("world_setting")
    if world_setting:
        if len(world_setting) > MAX_WORLD_SETTING_CHARS:
            world_setting = world_setting[:MAX_WORLD_SETTING_CHARS] + "\n...(truncated)"
        lines.append("## Source text (excerpt)")
        lines.append(world_setting)
        lines.append("")

    lines.append("Use the information above to help with the user's creative questions. Reply in the user's language.")
    return "\n".join(lines)


def build_project_context(project) -> Dict[str, Any]:
    """Collect the prompt context for ``project``."""

    return {
        "project_title": project.title,
        "project_description": project.description,
        "setting_data": project.setting_data or {},
        "characters": [character.to_dict() for character in project.characters],
        "scene_events": [event.to_dict() for event in project.scene_events],
        "world_setting": project.world_setting,
    }


def _clean_messages(messages: Iterable[Any]) -> List[Dict[str, str]]:
    cleaned: List[Dict[str, str]] = []
    for message in messages or []:
        if not isinstance(message, dict):
            continue
        role = message.get("role")
        content = message.get("content")
        if role not in ALLOWED_ROLES or not isinstance(content, str) or not content.strip():
            continue
        cleaned.append({"role": role, "content": content})
    return cleaned


class ChatAssistant:
    def __init__(
        self,
        api_key: str,
        *,
        model_name: str = "gpt-4o-mini",
        max_tokens: int = 2000,
        temperature: float = 0.7,
    ) -> None:
        if not (api_key or "").strip():
            raise ChatAssistantError("OPENAI_API_KEY is not configured.")
        self.model_name = model_name
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = openai.OpenAI(api_key=api_key.strip())

    @classmethod
    def from_app_config(cls) -> "ChatAssistant":
        config = current_app.config
        return cls(
            config.get("OPENAI_API_KEY") or "",
            model_name=config.get("OPENAI_CHAT_MODEL") or "gpt-4o-mini",
        )

    def reply(self, messages: Iterable[Any], context: Optional[Mapping[str, Any]] = None) -> ChatReply:
        conversation = _clean_messages(messages)
        if not conversation:
            raise ChatAssistantError("Send at least one message.")

        payload = [{"role": "system", "content": build_system_prompt(context or {})}, *conversation]
        try:
            completion = self._client.chat.completions.create(
                model=self.model_name,
                messages=payload,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as exc:
            raise ChatAssistantError(str(exc) or "The chat model request failed.") from exc

        return ChatReply(reply=self._extract_text(completion), model=self.model_name)

    @staticmethod
    def _extract_text(completion: Any) -> str:
        choices = getattr(completion, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        return str(content or "")
