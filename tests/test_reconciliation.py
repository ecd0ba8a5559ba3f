"""Tests for sign-in handling and local → cloud migration."""

from __future__ import annotations

import asyncio

import pytest
from result import Err, Ok

from conftest import make_entry
from writetrack.data.local_store import LocalStorage
from writetrack.data.remote_store import DocumentEntryCollection
from writetrack.models.entries import WritingEntry
from writetrack.models.storage import LocalMode, MigrationAction, RemoteMode
from writetrack.services.entry_service import CLOUD_DISABLED, EntryService
from writetrack.services.reconciliation import (
    MIGRATION_IN_PROGRESS,
    MIGRATION_WRONG_ACCOUNT,
    ReconciliationService,
)


def _build(
    storage: LocalStorage, collection: DocumentEntryCollection | None
) -> tuple[EntryService, ReconciliationService]:
    entries = EntryService(storage, collection)
    return entries, ReconciliationService(storage, entries, collection)


@pytest.mark.asyncio
async def test_first_sign_in_offers_and_performs_migration(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    local = [make_entry("L1", hours=3), make_entry("L2", hours=2), make_entry("L3", hours=1)]
    await storage.store_entries(local)
    entries, recon = _build(storage, collection)

    decision = await recon.on_auth_changed("U")
    assert isinstance(decision, Ok)
    assert decision.ok_value.action is MigrationAction.PROMPT
    assert decision.ok_value.needs_confirmation
    assert decision.ok_value.local_entry_count == 3
    assert entries.mode == RemoteMode("U")

    report = await recon.migrate("U")
    assert isinstance(report, Ok)
    assert report.ok_value.migrated == 3

    assert [entry.id for entry in await collection.list_entries("U")] == ["L1", "L2", "L3"]
    assert await storage.load_entries() == []
    listed = await entries.list_entries()
    assert isinstance(listed, Ok)
    assert [entry.id for entry in listed.ok_value] == ["L1", "L2", "L3"]


@pytest.mark.asyncio
async def test_migration_rerun_does_not_duplicate(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    local = [make_entry("L1"), make_entry("L2")]
    await collection.upsert_entry("U", local[0])
    await storage.store_entries(local)
    await storage.set_auth_user("U")
    _entries, recon = _build(storage, collection)

    report = await recon.migrate("U")
    assert isinstance(report, Ok)
    assert await collection.count("U") == 2


@pytest.mark.asyncio
async def test_entries_without_id_get_document_ids(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    await storage.store_entries([make_entry("")])
    await storage.set_auth_user("U")
    _entries, recon = _build(storage, collection)
    report = await recon.migrate("U")
    assert isinstance(report, Ok)
    migrated = await collection.list_entries("U")
    assert len(migrated) == 1
    assert len(migrated[0].id) == 20


@pytest.mark.asyncio
async def test_failed_migration_keeps_local_entries(
    storage: LocalStorage,
    collection: DocumentEntryCollection,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    local = [make_entry("L1"), make_entry("L2"), make_entry("L3")]
    await storage.store_entries(local)
    await storage.set_auth_user("U")
    _entries, recon = _build(storage, collection)

    original_upsert = collection.upsert_entry
    calls = {"count": 0}

    async def flaky_upsert(user_id: str, entry: WritingEntry) -> None:
        calls["count"] += 1
        if calls["count"] == 2:
            raise RuntimeError("network down")
        await original_upsert(user_id, entry)

    monkeypatch.setattr(collection, "upsert_entry", flaky_upsert)
    report = await recon.migrate("U")
    assert isinstance(report, Err)
    assert "local entries were kept" in report.err_value
    assert "network down" in report.err_value
    assert await storage.load_entries() == local
    assert not recon.migration_in_flight

    monkeypatch.setattr(collection, "upsert_entry", original_upsert)
    retry = await recon.migrate("U")
    assert isinstance(retry, Ok)
    assert await collection.count("U") == 3


@pytest.mark.asyncio
async def test_concurrent_migration_is_rejected(
    storage: LocalStorage,
    collection: DocumentEntryCollection,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await storage.store_entries([make_entry("L1")])
    await storage.set_auth_user("U")
    _entries, recon = _build(storage, collection)

    release = asyncio.Event()
    original_upsert = collection.upsert_entry

    async def slow_upsert(user_id: str, entry: WritingEntry) -> None:
        await release.wait()
        await original_upsert(user_id, entry)

    monkeypatch.setattr(collection, "upsert_entry", slow_upsert)
    first = asyncio.create_task(recon.migrate("U"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert recon.migration_in_flight

    second = await recon.migrate("U")
    assert isinstance(second, Err)
    assert second.err_value == MIGRATION_IN_PROGRESS

    release.set()
    report = await first
    assert isinstance(report, Ok)
    assert await collection.count("U") == 1


@pytest.mark.asyncio
async def test_no_prompt_when_local_store_is_empty(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    _entries, recon = _build(storage, collection)
    decision = await recon.on_auth_changed("U")
    assert isinstance(decision, Ok)
    assert decision.ok_value.action is MigrationAction.NONE


@pytest.mark.asyncio
async def test_no_prompt_when_already_signed_in(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    await storage.set_auth_user("U")
    await storage.store_entries([make_entry("L1")])
    _entries, recon = _build(storage, collection)
    decision = await recon.on_auth_changed("U")
    assert isinstance(decision, Ok)
    assert not decision.ok_value.needs_confirmation


@pytest.mark.asyncio
async def test_declined_migration_prompts_on_next_sign_in(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    await storage.store_entries([make_entry("L1")])
    entries, recon = _build(storage, collection)

    first = await recon.on_auth_changed("U")
    assert isinstance(first, Ok) and first.ok_value.needs_confirmation

    signed_out = await recon.on_auth_changed(None)
    assert isinstance(signed_out, Ok)
    assert entries.mode == LocalMode()
    assert await recon.current_user() is None

    again = await recon.on_auth_changed("U")
    assert isinstance(again, Ok)
    assert again.ok_value.needs_confirmation
    assert await collection.count("U") == 0


@pytest.mark.asyncio
async def test_sign_in_without_cloud_is_rejected(storage: LocalStorage) -> None:
    entries, recon = _build(storage, None)
    decision = await recon.on_auth_changed("U")
    assert isinstance(decision, Err)
    assert decision.err_value == CLOUD_DISABLED
    assert entries.mode == LocalMode()
    assert await recon.current_user() is None

    migrated = await recon.migrate("U")
    assert isinstance(migrated, Err)


@pytest.mark.asyncio
async def test_restore_reactivates_persisted_user(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    await collection.upsert_entry("U", make_entry("R1"))
    await storage.set_auth_user("U")
    entries, recon = _build(storage, collection)

    restored = await recon.restore()
    assert isinstance(restored, Ok)
    assert entries.signed_in
    listed = await entries.list_entries()
    assert isinstance(listed, Ok)
    assert [entry.id for entry in listed.ok_value] == ["R1"]


@pytest.mark.asyncio
async def test_migration_only_targets_signed_in_user(
    storage: LocalStorage, collection: DocumentEntryCollection
) -> None:
    local = [make_entry("L1")]
    await storage.store_entries(local)
    _entries, recon = _build(storage, collection)

    signed_out = await recon.migrate("U")
    assert isinstance(signed_out, Err)
    assert signed_out.err_value == MIGRATION_WRONG_ACCOUNT

    decision = await recon.on_auth_changed("U")
    assert isinstance(decision, Ok)
    other = await recon.migrate("someone-else")
    assert isinstance(other, Err)
    assert other.err_value == MIGRATION_WRONG_ACCOUNT
    assert not recon.migration_in_flight

    assert await collection.count("someone-else") == 0
    assert await collection.count("U") == 0
    assert await storage.load_entries() == local
