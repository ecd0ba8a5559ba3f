"""Configuration for WriteTrack."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

_PLACEHOLDER_PREFIX = "PASTE_YOUR_"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class AISettings:
    """Credentials for the generative-text service."""

    api_key: str
    model: str = DEFAULT_GEMINI_MODEL
    endpoint: str = DEFAULT_GEMINI_ENDPOINT
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not _is_real_value(self.api_key):
            msg = "AISettings requires a non-placeholder API key"
            raise ValueError(msg)


@dataclass(frozen=True)
class RemoteSettings:
    """Location of the shared document database backing signed-in users."""

    db_path: Path


@dataclass(frozen=True)
class Config:
    """Application configuration.

    ``remote`` and ``ai`` are ``None`` when the feature is disabled.
    """

    data_dir: Path = field(default_factory=lambda: Path.home() / ".local" / "share" / "writetrack")
    remote: RemoteSettings | None = None
    ai: AISettings | None = None

    @property
    def db_path(self) -> Path:
        return self.data_dir / "local.db"

    @property
    def cloud_enabled(self) -> bool:
        return self.remote is not None

    @property
    def ai_enabled(self) -> bool:
        return self.ai is not None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build a config from ``WRITETRACK_*`` environment variables."""
        env = os.environ if environ is None else environ

        data_dir_value = env.get("WRITETRACK_DATA_DIR", "")
        data_dir = (
            Path(data_dir_value).expanduser()
            if data_dir_value
            else Path.home() / ".local" / "share" / "writetrack"
        )

        remote: RemoteSettings | None = None
        remote_value = env.get("WRITETRACK_REMOTE_DB", "")
        if _is_real_value(remote_value):
            remote = RemoteSettings(db_path=Path(remote_value).expanduser())

        ai: AISettings | None = None
        api_key = env.get("WRITETRACK_GEMINI_API_KEY", "")
        if _is_real_value(api_key):
            ai = AISettings(
                api_key=api_key.strip(),
                model=env.get("WRITETRACK_GEMINI_MODEL", "") or DEFAULT_GEMINI_MODEL,
            )

        return cls(data_dir=data_dir, remote=remote, ai=ai)


def _is_real_value(value: str) -> bool:
    stripped = value.strip()
    return bool(stripped) and not stripped.startswith(_PLACEHOLDER_PREFIX)
