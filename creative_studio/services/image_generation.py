from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import httpx
from flask import current_app


GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class ImageGenerationError(RuntimeError):
    """Raised when an image cannot be generated."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class GeneratedImage:
    image_data: str
    mime_type: str


def generate_image(prompt: str) -> GeneratedImage:
    """Ask Gemini for an image matching ``prompt``; returns base64 image data."""

    api_key = current_app.config.get("GEMINI_API_KEY")
    if not api_key:
        raise ImageGenerationError("GEMINI_API_KEY is not configured. Add it to your .env file.")

    prompt_text = (prompt or "").strip()
    if not prompt_text:
        raise ImageGenerationError("A prompt is required.", status_code=400)

    url = GEMINI_ENDPOINT.format(model=current_app.config.get("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image"))
    body = {
        "contents": [{"parts": [{"text": prompt_text}]}],
        "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
    }

    try:
        with httpx.Client(timeout=httpx.Timeout(120.0)) as client:
            response = client.post(url, params={"key": api_key}, json=body)
    except httpx.HTTPError as exc:
        current_app.logger.warning("Gemini image request failed: %s", exc)
        raise ImageGenerationError("The image service is unreachable. Please retry in a moment.", 502) from exc

    try:
        data: Dict[str, Any] = response.json()
    except ValueError:
        data = {}

    if response.status_code >= 400:
        error = data.get("error") if isinstance(data, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        raise ImageGenerationError(
            message or f"Gemini API error ({response.status_code})",
            status_code=response.status_code,
        )

    candidates = data.get("candidates") or [{}]
    parts: List[Dict[str, Any]] = (candidates[0].get("content") or {}).get("parts") or []
    image_part = next((part for part in parts if part.get("inlineData")), None)
    if image_part is None:
        raise ImageGenerationError("No image was generated.")

    inline = image_part["inlineData"]
    return GeneratedImage(image_data=inline.get("data", ""), mime_type=inline.get("mimeType") or "image/png")
