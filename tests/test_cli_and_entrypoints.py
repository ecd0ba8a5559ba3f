"""CLI and entrypoint tests."""

from __future__ import annotations

import json
import runpy
from collections.abc import Iterator
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from conftest import FakeGenerator, make_entry
from writetrack.cli import (
    _do_list,
    _do_track,
    app,
    parse_activity,
    parse_status,
    run_timer_session,
)
from writetrack.config import Config
from writetrack.models.entries import ActivityType, EntryStatus
from writetrack.services.ai_service import AIService
from writetrack.services.entry_service import serialize_entries
from writetrack.services.timer import SessionTimer, TimerState

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path, clean_env: None) -> Path:
    return tmp_path / "data"


@pytest.fixture
def cloud_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clean_env: None) -> Path:
    cloud = tmp_path / "cloud" / "documents.db"
    monkeypatch.setenv("WRITETRACK_REMOTE_DB", str(cloud))
    return cloud


def _invoke(data_dir: Path, *args: str, input: str | None = None):  # type: ignore[no-untyped-def]
    return runner.invoke(app, ["--data-dir", str(data_dir), *args], input=input)


def _saved_id(output: str) -> str:
    line = next(line for line in output.splitlines() if line.startswith("Saved "))
    return line.removeprefix("Saved ").split(":", 1)[0]


def test_parse_activity_accepts_labels_and_names() -> None:
    assert parse_activity("Reading/Research") is ActivityType.RESEARCH
    assert parse_activity("research") is ActivityType.RESEARCH
    assert parse_activity(" PLANNING ") is ActivityType.PLANNING
    with pytest.raises(typer.BadParameter):
        parse_activity("napping")


def test_parse_status() -> None:
    assert parse_status("in progress") is EntryStatus.IN_PROGRESS
    assert parse_status("in_progress") is EntryStatus.IN_PROGRESS
    assert parse_status("Completed") is EntryStatus.COMPLETED
    with pytest.raises(typer.BadParameter):
        parse_status("abandoned")


def test_no_arguments_shows_help() -> None:
    result = runner.invoke(app, [])
    assert "Usage" in result.output


def test_add_list_show_and_edit(data_dir: Path) -> None:
    added = _invoke(data_dir, "add", "writing", "-c", "one two three", "-m", "25", "--tags", "a,b")
    assert added.exit_code == 0, added.output
    assert "Untitled Writing Entry" in added.output
    entry_id = _saved_id(added.output)

    listed = _invoke(data_dir, "list")
    assert listed.exit_code == 0
    assert "Writing" in listed.output
    assert "3 words" in listed.output

    edited = _invoke(data_dir, "edit", entry_id, "--title", "Opening scene", "-c", "a b")
    assert edited.exit_code == 0, edited.output

    shown = _invoke(data_dir, "show", entry_id)
    assert shown.exit_code == 0
    assert "# Opening scene" in shown.output
    assert "2 words" in shown.output
    assert "tags: a, b" in shown.output


def test_add_requires_content(data_dir: Path) -> None:
    result = _invoke(data_dir, "add", "editing")
    assert result.exit_code == 1


def test_show_unknown_entry_fails(data_dir: Path) -> None:
    result = _invoke(data_dir, "show", "missing")
    assert result.exit_code == 1


def test_list_when_empty(data_dir: Path) -> None:
    result = _invoke(data_dir, "list")
    assert result.exit_code == 0
    assert "No entries yet." in result.output


def test_stats_and_calendar(data_dir: Path) -> None:
    _invoke(data_dir, "add", "writing", "-c", "four words right here", "-m", "30")
    _invoke(data_dir, "add", "editing", "-c", "not counted", "-m", "30")

    stats = _invoke(data_dir, "stats")
    assert stats.exit_code == 0
    assert "Entries:     2" in stats.output
    assert "Words:       4" in stats.output
    assert "Time:        1.0 h" in stats.output

    calendar = _invoke(data_dir, "calendar", "--year", "2026", "--month", "10")
    assert calendar.exit_code == 0
    assert "October 2026" in calendar.output
    assert "Mon" in calendar.output


def test_export_when_empty_writes_no_file(data_dir: Path, tmp_path: Path) -> None:
    out_dir = tmp_path / "exports"
    result = _invoke(data_dir, "export", "--dir", str(out_dir))
    assert result.exit_code == 0
    assert "No data to export." in result.output
    assert not out_dir.exists()


def test_export_then_import_into_fresh_store(data_dir: Path, tmp_path: Path) -> None:
    _invoke(data_dir, "add", "planning", "-c", "outline the middle")
    out_dir = tmp_path / "exports"
    exported = _invoke(data_dir, "export", "--dir", str(out_dir))
    assert exported.exit_code == 0
    assert "Successfully exported 1 entries." in exported.output
    backup = next(out_dir.glob("writetrack-backup-*.json"))

    other = tmp_path / "other"
    imported = _invoke(other, "import", str(backup))
    assert imported.exit_code == 0
    assert "Import successful. Added 1 new entries." in imported.output

    again = _invoke(other, "import", str(backup))
    assert "Added 0 new entries." in again.output


def test_import_rejects_invalid_file(data_dir: Path, tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"not": "a list"}), encoding="utf-8")
    result = _invoke(data_dir, "import", str(bad))
    assert result.exit_code == 1


def test_settings_show_update_and_reset(data_dir: Path) -> None:
    shown = _invoke(data_dir, "settings")
    assert shown.exit_code == 0
    assert "Reading/Research" in shown.output

    updated = _invoke(data_dir, "settings", "writing", "45")
    assert updated.exit_code == 0
    assert "45 min" in updated.output

    reset = _invoke(data_dir, "settings", "--reset")
    assert reset.exit_code == 0
    assert "45 min" not in reset.output


def test_login_without_cloud_fails(data_dir: Path) -> None:
    result = _invoke(data_dir, "login", "alice")
    assert result.exit_code == 1


def test_login_migrates_local_entries(data_dir: Path, cloud_env: Path, tmp_path: Path) -> None:
    _invoke(data_dir, "add", "writing", "-c", "local draft")

    login = _invoke(data_dir, "login", "alice", "--yes")
    assert login.exit_code == 0, login.output
    assert "Signed in as alice." in login.output
    assert "Migrated 1 entries to the cloud." in login.output

    listed = _invoke(data_dir, "list")
    assert "Untitled Writing Entry" in listed.output

    backup = tmp_path / "b.json"
    backup.write_text(serialize_entries([make_entry("x")]), encoding="utf-8")
    blocked = _invoke(data_dir, "import", str(backup))
    assert blocked.exit_code == 1

    logout = _invoke(data_dir, "logout")
    assert logout.exit_code == 0
    assert "No entries yet." in _invoke(data_dir, "list").output


def test_signed_in_without_cloud_refuses_until_logout(
    data_dir: Path, cloud_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    login = _invoke(data_dir, "login", "alice")
    assert login.exit_code == 0, login.output
    monkeypatch.delenv("WRITETRACK_REMOTE_DB")

    assert _invoke(data_dir, "add", "writing", "-c", "offline draft").exit_code == 1
    assert _invoke(data_dir, "list").exit_code == 1

    logout = _invoke(data_dir, "logout")
    assert logout.exit_code == 0, logout.output
    assert "No entries yet." in _invoke(data_dir, "list").output


def test_declined_migration_keeps_local_entries(data_dir: Path, cloud_env: Path) -> None:
    _invoke(data_dir, "add", "writing", "-c", "stay here")
    login = _invoke(data_dir, "login", "alice", input="n\n")
    assert login.exit_code == 0
    assert "Local entries were left on this device." in login.output

    _invoke(data_dir, "logout")
    assert "Writing" in _invoke(data_dir, "list").output


def test_plan_without_ai_fails(data_dir: Path) -> None:
    result = _invoke(data_dir, "plan", "write every morning", "--start", "2026-10-19")
    assert result.exit_code == 1


def test_plan_writes_calendar_file(
    data_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    reply = json.dumps(
        [
            {
                "date": "2026-10-19",
                "activity_type": "Writing",
                "title": "Draft",
                "start_time": "08:00",
                "duration_minutes": 45,
            }
        ]
    )
    monkeypatch.setattr(
        "writetrack.services.container.AIService", lambda _gen: AIService(FakeGenerator(reply))
    )
    out_dir = tmp_path / "plans"
    result = _invoke(
        data_dir, "plan", "draft monday", "--start", "2026-10-19", "--dir", str(out_dir)
    )
    assert result.exit_code == 0, result.output
    assert "Writing: Draft" in result.output
    ics = (out_dir / "writing-plan-2026-10-19-to-2026-10-25.ics").read_text(encoding="utf-8")
    assert "DTSTART:20261019T080000Z" in ics


def test_plan_rejects_reversed_range(data_dir: Path) -> None:
    result = _invoke(data_dir, "plan", "x", "--start", "2026-10-19", "--end", "2026-10-01")
    assert result.exit_code != 0


def _lines(*commands: str) -> Iterator[str]:
    yield from commands


@pytest.mark.asyncio
async def test_run_timer_session_handles_commands() -> None:
    commands = _lines("g 10", "e 5", "p", "bogus", "r", "e x", "s")
    timer = SessionTimer()
    minutes = await run_timer_session(timer, lambda _prompt: next(commands))
    assert minutes == 0
    assert timer.state is TimerState.IDLE


@pytest.mark.asyncio
async def test_run_timer_session_stops_at_end_of_input() -> None:
    def read_line(_prompt: str) -> str:
        raise EOFError

    timer = SessionTimer()
    assert await run_timer_session(timer, read_line) == 0
    assert timer.state is TimerState.IDLE


@pytest.mark.asyncio
async def test_track_logs_pause_events_into_notes(tmp_path: Path) -> None:
    config = Config(data_dir=tmp_path / "data")
    commands = _lines("p", "r", "s")
    await _do_track(
        config,
        ActivityType.EDITING,
        None,
        "tightened chapter two",
        read_line=lambda _prompt: next(commands),
    )

    entries = await _do_list(config)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.activity_type is ActivityType.EDITING
    assert entry.time_spent_minutes == 0
    assert entry.word_count == 3
    lines = entry.notes.splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("] Timer paused.")
    assert lines[1].endswith("] Timer resumed.")


@pytest.mark.asyncio
async def test_track_without_content_saves_nothing(tmp_path: Path) -> None:
    config = Config(data_dir=tmp_path / "data")
    commands = _lines("s", "   ")
    await _do_track(config, ActivityType.WRITING, 5, None, read_line=lambda _p: next(commands))
    assert await _do_list(config) == []


def test_track_command_parses_activity(monkeypatch: pytest.MonkeyPatch, data_dir: Path) -> None:
    called: dict[str, object] = {}

    def fake_asyncio_run(coro) -> None:  # type: ignore[no-untyped-def]
        called["count"] = called.get("count", 0) + 1  # type: ignore[operator]
        coro.close()

    monkeypatch.setattr("writetrack.cli.asyncio.run", fake_asyncio_run)
    result = _invoke(data_dir, "track", "research", "--goal", "20")
    assert result.exit_code == 0
    assert called["count"] == 1


def test_python_module_entrypoint_invokes_cli_app(monkeypatch: pytest.MonkeyPatch) -> None:
    called = {"count": 0}

    def fake_app() -> None:
        called["count"] += 1

    monkeypatch.setattr("writetrack.cli.app", fake_app)
    runpy.run_module("writetrack.__main__", run_name="__main__")
    assert called["count"] == 1
