"""Minimal client for the Gemini ``generateContent`` REST endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol

import requests

if TYPE_CHECKING:
    from writetrack.config import AISettings

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that turns a prompt into text."""

    async def generate(self, prompt: str, *, response_schema: dict[str, Any] | None = None) -> str: ...


class GeminiError(RuntimeError):
    """The generative-text service returned an unusable response."""


class GeminiClient:
    """Blocking HTTP calls run on a worker thread."""

    def __init__(self, settings: AISettings, session: requests.Session | None = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        base = self._settings.endpoint.rstrip("/")
        return f"{base}/models/{self._settings.model}:generateContent"

    async def generate(self, prompt: str, *, response_schema: dict[str, Any] | None = None) -> str:
        return await asyncio.to_thread(self._generate_sync, prompt, response_schema)

    def _generate_sync(self, prompt: str, response_schema: dict[str, Any] | None) -> str:
        payload: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        res = self._session.post(
            self.url,
            params={"key": self._settings.api_key},
            json=payload,
            timeout=self._settings.timeout_seconds,
        )
        res.raise_for_status()
        return extract_text(res.json())

    def close(self) -> None:
        self._session.close()


def extract_text(body: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = body.get("candidates") or []
    if not candidates:
        feedback = body.get("promptFeedback") or {}
        msg = f"No candidates in response (blockReason={feedback.get('blockReason', 'unknown')})"
        raise GeminiError(msg)
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(str(part.get("text", "")) for part in parts)
