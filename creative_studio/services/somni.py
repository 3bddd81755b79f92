"""Client for the external setting-extraction service.

The service accepts raw manuscript text and returns structured JSON
(characters, relations, world entries, plot threads, timelines and
consistency reports). Its payloads are relayed as-is; this module only owns
the transport and error mapping.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from flask import current_app


DEFAULT_BASE_URL = "https://somni-peach.vercel.app"


class SomniAPIError(RuntimeError):
    """Raised when the extraction service rejects a request or is unreachable."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


def _base_url() -> str:
    base = current_app.config.get("SOMNI_API_BASE") or DEFAULT_BASE_URL
    return base.rstrip("/")


def _post(path: str, body: Dict[str, Any]) -> Dict[str, Any]:
    timeout = httpx.Timeout(current_app.config.get("SOMNI_TIMEOUT", 60.0))
    url = _base_url() + path
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(url, json=body)
    except httpx.HTTPError as exc:
        current_app.logger.warning("Extraction service request to %s failed: %s", url, exc)
        raise SomniAPIError("The extraction service is unreachable. Please retry in a moment.") from exc

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code >= 400:
        detail = data.get("detail") if isinstance(data, dict) else None
        message = detail if isinstance(detail, str) and detail else (response.reason_phrase or "API error")
        raise SomniAPIError(message, status_code=response.status_code)

    if not isinstance(data, dict):
        raise SomniAPIError("The extraction service returned an unexpected payload.")
    return data


def extract_setting(raw_text: str, existing_settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return _post("/extract", {"raw_text": raw_text, "existing_settings": existing_settings or None})


def check_consistency(raw_text: str, setting_data: Dict[str, Any]) -> Dict[str, Any]:
    return _post("/consistency", {"raw_text": raw_text, "setting_data": setting_data})


def extract_timeline(raw_text: str, setting_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return _post("/timeline", {"raw_text": raw_text, "setting_data": setting_data or None})
