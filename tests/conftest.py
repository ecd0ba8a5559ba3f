"""Shared fixtures for WriteTrack tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from writetrack.config import Config, RemoteSettings
from writetrack.data.db import DOCUMENT_SCHEMA_SQL, Database
from writetrack.data.local_store import LocalStorage
from writetrack.data.remote_store import DocumentEntryCollection
from writetrack.models.entries import ActivityType, WritingEntry

BASE_TIME = datetime(2026, 10, 5, 9, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGenerator:
    """Text generator returning canned replies or raising."""

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []
        self.schemas: list[dict[str, Any] | None] = []

    async def generate(self, prompt: str, *, response_schema: dict[str, Any] | None = None) -> str:
        self.prompts.append(prompt)
        self.schemas.append(response_schema)
        if self.error is not None:
            raise self.error
        return self.reply


def make_entry(
    entry_id: str,
    *,
    hours: float = 0,
    activity_type: ActivityType = ActivityType.WRITING,
    content: str = "some words here",
    **fields: Any,
) -> WritingEntry:
    return WritingEntry(
        id=entry_id,
        entry_date=BASE_TIME + timedelta(hours=hours),
        activity_type=activity_type,
        content=content,
        **fields,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def local_db() -> AsyncGenerator[Database]:
    """In-memory local key/value database."""
    db = Database(Path(":memory:"))
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)


@pytest.fixture
async def remote_db() -> AsyncGenerator[Database]:
    """In-memory document database."""
    db = Database(Path(":memory:"), DOCUMENT_SCHEMA_SQL)
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)


@pytest.fixture
def storage(local_db: Database) -> LocalStorage:
    return LocalStorage(local_db)


@pytest.fixture
def collection(remote_db: Database) -> DocumentEntryCollection:
    return DocumentEntryCollection(remote_db)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config with cloud sync pointed at a temporary document database."""
    return Config(
        data_dir=tmp_path / "data",
        remote=RemoteSettings(db_path=tmp_path / "cloud" / "documents.db"),
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "WRITETRACK_DATA_DIR",
        "WRITETRACK_REMOTE_DB",
        "WRITETRACK_GEMINI_API_KEY",
        "WRITETRACK_GEMINI_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
