"""Typer CLI for WriteTrack."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager, suppress
from datetime import date, timedelta
from pathlib import Path
from typing import Annotated

import typer
from result import Err, Result

from writetrack.config import Config
from writetrack.models.entries import ActivityType, EntryStatus, WritingEntry
from writetrack.models.storage import ExportSummary, ImportSummary
from writetrack.services.container import ServiceContainer
from writetrack.services.entry_service import append_timer_log
from writetrack.services.ical import build_calendar, plan_filename
from writetrack.services.timer import SessionTimer, format_clock

app = typer.Typer(
    name="writetrack",
    help="WriteTrack — log writing sessions, time them, and review your progress.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

TIMER_PROMPT = "[p]ause/resume  [e]xtend N  [g]oal N  [f]ullscreen  [t]ime  [s]top > "


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Directory for the local database"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Configure logging and load settings from the environment."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = Config.from_env()
    if data_dir is not None:
        config = Config(data_dir=data_dir, remote=config.remote, ai=config.ai)
    ctx.obj = config


@asynccontextmanager
async def _services(
    config: Config, *, require_restored: bool = True
) -> AsyncIterator[ServiceContainer]:
    """Open the services; unless told otherwise, exit when the sign-in could not be restored."""
    container = await ServiceContainer.create(config)
    try:
        if require_restored and container.restore_error is not None:
            typer.secho(container.restore_error, fg=typer.colors.RED, err=True)
            typer.secho("Run 'writetrack logout' to use local storage.", err=True)
            raise typer.Exit(1)
        yield container
    finally:
        await container.close()


def _unwrap[T](result: Result[T, str]) -> T:
    if isinstance(result, Err):
        typer.secho(result.err_value, fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    return result.ok_value


def parse_activity(value: str) -> ActivityType:
    """Accept an activity's label (``Reading/Research``) or name (``research``)."""
    normalized = value.strip().lower()
    for activity in ActivityType:
        if normalized in {activity.value.lower(), activity.name.lower()}:
            return activity
    choices = ", ".join(activity.name.lower() for activity in ActivityType)
    msg = f"Unknown activity {value!r}; choose one of: {choices}"
    raise typer.BadParameter(msg)


def parse_status(value: str) -> EntryStatus:
    normalized = value.strip().lower().replace("_", " ")
    for status in EntryStatus:
        if normalized in {status.value.lower(), status.name.lower().replace("_", " ")}:
            return status
    msg = f"Unknown status {value!r}"
    raise typer.BadParameter(msg)


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _describe(entry: WritingEntry) -> str:
    when = entry.entry_date.astimezone().strftime("%Y-%m-%d %H:%M")
    return (
        f"{entry.id[:12]:<12}  {when}  {entry.activity_type.value:<18} "
        f"{entry.time_spent_minutes:>5} min  {entry.word_count:>6} words  {entry.title}"
    )


@app.command()
def add(
    ctx: typer.Context,
    activity: Annotated[str, typer.Argument(help="Activity type, e.g. writing or editing")],
    content: Annotated[str | None, typer.Option("--content", "-c")] = None,
    content_file: Annotated[Path | None, typer.Option("--file", "-f", exists=True)] = None,
    title: Annotated[str, typer.Option("--title")] = "",
    minutes: Annotated[float, typer.Option("--minutes", "-m", min=0)] = 0,
    tags: Annotated[str | None, typer.Option("--tags", help="Comma-separated")] = None,
    notes: Annotated[str, typer.Option("--notes")] = "",
    writing_type: Annotated[str | None, typer.Option("--writing-type")] = None,
    status: Annotated[str, typer.Option("--status")] = EntryStatus.COMPLETED.value,
    summarize: Annotated[bool, typer.Option("--summarize", help="Add an AI summary")] = False,
) -> None:
    """Log a new session."""
    text = content_file.read_text(encoding="utf-8") if content_file else (content or "")
    if not text.strip():
        typer.secho("Entry content is required.", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    fields: dict[str, object] = {
        "content": text,
        "title": title,
        "time_spent_minutes": minutes,
        "tags": _split_tags(tags),
        "notes": notes,
        "status": parse_status(status),
    }
    if writing_type:
        fields["writing_type"] = writing_type
    entry = WritingEntry.new(parse_activity(activity), **fields)
    saved = asyncio.run(_do_save(ctx.obj, entry, summarize=summarize))
    typer.echo(f"Saved {saved.id}: {saved.title}")


async def _do_save(config: Config, entry: WritingEntry, *, summarize: bool = False) -> WritingEntry:
    async with _services(config) as services:
        if summarize:
            entry = await services.ai_service.enrich_entry(entry.with_derived_fields())
        return _unwrap(await services.entry_service.save_entry(entry))


@app.command("list")
def list_entries(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", min=1)] = 20,
) -> None:
    """Show the most recent entries."""
    entries = asyncio.run(_do_list(ctx.obj))
    if not entries:
        typer.echo("No entries yet.")
        return
    for entry in entries[:limit]:
        typer.echo(_describe(entry))


async def _do_list(config: Config) -> list[WritingEntry]:
    async with _services(config) as services:
        return _unwrap(await services.entry_service.list_entries())


async def _do_get(config: Config, entry_id: str) -> WritingEntry:
    async with _services(config) as services:
        return _unwrap(await services.entry_service.get_entry(entry_id))


@app.command()
def show(ctx: typer.Context, entry_id: Annotated[str, typer.Argument()]) -> None:
    """Print one entry in full."""
    entry = asyncio.run(_do_get(ctx.obj, entry_id))
    typer.echo(f"# {entry.title or '(untitled)'}")
    typer.echo(f"{entry.activity_type.value} / {entry.writing_type} — {entry.status.value}")
    typer.echo(f"{entry.entry_date.astimezone():%Y-%m-%d %H:%M}  ·  {entry.time_spent_minutes} min")
    typer.echo(f"{entry.word_count} words  ·  tags: {', '.join(entry.tags) or '-'}")
    typer.echo("")
    typer.echo(entry.content)
    if entry.notes.strip():
        typer.echo("\nNotes:" + ("" if entry.notes.startswith("\n") else "\n") + entry.notes)
    if entry.ai_summary:
        typer.echo(f"\nSummary: {entry.ai_summary}")
    if entry.ai_themes:
        typer.echo(f"Themes: {', '.join(entry.ai_themes)}")


@app.command()
def edit(
    ctx: typer.Context,
    entry_id: Annotated[str, typer.Argument()],
    title: Annotated[str | None, typer.Option("--title")] = None,
    content: Annotated[str | None, typer.Option("--content", "-c")] = None,
    notes: Annotated[str | None, typer.Option("--notes")] = None,
    minutes: Annotated[float | None, typer.Option("--minutes", "-m", min=0)] = None,
    tags: Annotated[str | None, typer.Option("--tags")] = None,
    status: Annotated[str | None, typer.Option("--status")] = None,
) -> None:
    """Update an existing entry in place."""
    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = title
    if content is not None:
        changes["content"] = content
    if notes is not None:
        changes["notes"] = notes
    if minutes is not None:
        changes["time_spent_minutes"] = minutes
    if tags is not None:
        changes["tags"] = _split_tags(tags)
    if status is not None:
        changes["status"] = parse_status(status)
    saved = asyncio.run(_do_edit(ctx.obj, entry_id, changes))
    typer.echo(f"Updated {saved.id}")


async def _do_edit(config: Config, entry_id: str, changes: dict[str, object]) -> WritingEntry:
    async with _services(config) as services:
        entry = _unwrap(await services.entry_service.get_entry(entry_id))
        updated = WritingEntry.model_validate({**entry.model_dump(), **changes})
        return _unwrap(await services.entry_service.save_entry(updated))


@app.command()
def summarize(ctx: typer.Context, entry_id: Annotated[str, typer.Argument()]) -> None:
    """Attach an AI summary, themes and suggested tags to an entry."""
    saved = asyncio.run(_do_summarize(ctx.obj, entry_id))
    typer.echo(saved.ai_summary or "")
    if saved.ai_themes:
        typer.echo(f"Themes: {', '.join(saved.ai_themes)}")


async def _do_summarize(config: Config, entry_id: str) -> WritingEntry:
    async with _services(config) as services:
        entry = _unwrap(await services.entry_service.get_entry(entry_id))
        enriched = await services.ai_service.enrich_entry(entry)
        return _unwrap(await services.entry_service.save_entry(enriched))


@app.command()
def stats(ctx: typer.Context) -> None:
    """Totals across all entries."""
    asyncio.run(_do_stats(ctx.obj))


async def _do_stats(config: Config) -> None:
    async with _services(config) as services:
        summary = _unwrap(await services.analytics_service.get_dashboard_stats())
    typer.echo(f"Entries:     {summary.entry_count}")
    typer.echo(f"Words:       {summary.total_words}")
    typer.echo(f"Time:        {summary.total_hours:.1f} h")
    for bucket in summary.by_activity:
        if bucket.entry_count:
            typer.echo(
                f"  {bucket.activity_type.value:<18} {bucket.entry_count:>4} entries "
                f"{bucket.total_minutes:>7.0f} min"
            )


@app.command()
def calendar(
    ctx: typer.Context,
    year: Annotated[int | None, typer.Option("--year")] = None,
    month: Annotated[int | None, typer.Option("--month", min=1, max=12)] = None,
) -> None:
    """Month grid; days with entries are marked with '*'."""
    today = date.today()
    asyncio.run(_do_calendar(ctx.obj, year or today.year, month or today.month))


async def _do_calendar(config: Config, year: int, month: int) -> None:
    async with _services(config) as services:
        grid = _unwrap(await services.analytics_service.get_calendar_month(year, month))
    typer.echo(f"{date(year, month, 1):%B %Y}")
    typer.echo(" ".join(f"{name:>4}" for name in grid.weekdays))
    for week in grid.weeks:
        cells = []
        for cell in week:
            label = f"{cell.day.day:>2}" if cell.in_month else "  "
            mark = "*" if cell.has_entry and cell.in_month else " "
            cells.append(f"{label}{mark}".rjust(4))
        typer.echo(" ".join(cells))


def _status_line(timer: SessionTimer) -> str:
    line = f"{format_clock(timer.elapsed_seconds)}  ({timer.state.value})"
    remaining = timer.remaining_seconds
    if remaining is not None:
        line += f"  goal: {format_clock(max(remaining, 0))} left"
    return line


async def run_timer_session(timer: SessionTimer, read_line: Callable[[str], str]) -> int | None:
    """Drive ``timer`` from single-letter commands until stopped.

    Lines are read on a worker thread; the timer itself and its ticker stay
    on the event loop. End of input stops the timer.
    """
    timer.start()
    ticker = asyncio.create_task(timer.run_ticker())
    try:
        while True:
            try:
                command = (await asyncio.to_thread(read_line, TIMER_PROMPT)).strip().lower()
            except EOFError:
                return timer.stop()
            verb, _, arg = command.partition(" ")
            match verb:
                case "p" | "r":
                    timer.toggle_pause()
                case "e" | "g":
                    try:
                        minutes = float(arg)
                    except ValueError:
                        typer.echo("Give a number of minutes, e.g. 'e 10'.")
                        continue
                    if verb == "e":
                        timer.extend_goal(minutes)
                    else:
                        timer.set_goal(minutes)
                case "f":
                    if timer.toggle_fullscreen():
                        typer.clear()
                case "s":
                    return timer.stop()
                case _:
                    timer.tick()
            typer.echo(_status_line(timer))
    finally:
        ticker.cancel()
        with suppress(asyncio.CancelledError):
            await ticker


@app.command()
def track(
    ctx: typer.Context,
    activity: Annotated[str, typer.Argument(help="Activity type to time")],
    goal: Annotated[
        float | None,
        typer.Option("--goal", help="Goal minutes (defaults to the activity setting)"),
    ] = None,
    content: Annotated[str | None, typer.Option("--content", "-c")] = None,
) -> None:
    """Time a session interactively, then log it."""
    asyncio.run(_do_track(ctx.obj, parse_activity(activity), goal, content))


async def _do_track(
    config: Config,
    activity: ActivityType,
    goal: float | None,
    content: str | None,
    read_line: Callable[[str], str] = input,
) -> None:
    async with _services(config) as services:
        settings = await services.settings_service.get_timer_settings()
        notes = ""

        def log(message: str) -> None:
            nonlocal notes
            notes = append_timer_log(notes, message)

        timer = SessionTimer(
            on_pause=lambda: log("Timer paused."),
            on_resume=lambda: log("Timer resumed."),
            on_goal_reached=lambda: typer.secho(
                "\nGoal reached! Extend with 'e N' or stop with 's'.", fg=typer.colors.YELLOW
            ),
        )
        timer.set_goal(goal if goal is not None else settings.goal_for(activity))
        minutes = await run_timer_session(timer, read_line)
        if minutes is None:
            return
        typer.echo(f"Session time: {minutes} min")

        text = content if content is not None else read_line("What did you work on? ")
        if not text.strip():
            typer.echo("No content given; nothing saved.")
            return
        entry = WritingEntry.new(
            activity, content=text, notes=notes.lstrip("\n"), time_spent_minutes=minutes
        )
        saved = _unwrap(await services.entry_service.save_entry(entry))
        typer.echo(f"Saved {saved.id}: {saved.title}")


@app.command("export")
def export_entries(
    ctx: typer.Context,
    directory: Annotated[Path, typer.Option("--dir", "-d", help="Output directory")] = Path("."),
) -> None:
    """Write all entries to a JSON backup file."""
    summary = asyncio.run(_do_export(ctx.obj, directory))
    typer.echo(summary.message)
    if summary.path is not None:
        typer.echo(str(summary.path))


async def _do_export(config: Config, directory: Path) -> ExportSummary:
    async with _services(config) as services:
        return _unwrap(await services.entry_service.export_entries(directory))


@app.command("import")
def import_entries(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
) -> None:
    """Merge entries from a JSON backup (signed out only)."""
    summary = asyncio.run(_do_import(ctx.obj, path))
    typer.echo(summary.message)


async def _do_import(config: Config, path: Path) -> ImportSummary:
    async with _services(config) as services:
        return _unwrap(await services.entry_service.import_file(path))


@app.command()
def login(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Account id from your identity provider")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Migrate without asking")] = False,
) -> None:
    """Sign in; offers to move local entries to the cloud the first time."""
    asyncio.run(_do_login(ctx.obj, user_id, yes))


async def _do_login(config: Config, user_id: str, assume_yes: bool) -> None:
    async with _services(config, require_restored=False) as services:
        decision = _unwrap(await services.reconciliation.on_auth_changed(user_id))
        typer.echo(f"Signed in as {user_id}.")
        if not decision.needs_confirmation:
            return
        question = (
            f"You have {decision.local_entry_count} entries stored locally. "
            "Move them to your cloud account?"
        )
        if not assume_yes and not typer.confirm(question, default=True):
            typer.echo("Local entries were left on this device.")
            return
        report = _unwrap(await services.reconciliation.migrate(decision.user_id))
        typer.echo(f"Migrated {report.migrated} entries to the cloud.")


@app.command()
def logout(ctx: typer.Context) -> None:
    """Sign out and return to local storage."""
    asyncio.run(_do_logout(ctx.obj))


async def _do_logout(config: Config) -> None:
    async with _services(config, require_restored=False) as services:
        _unwrap(await services.reconciliation.on_auth_changed(None))
    typer.echo("Signed out. Using local storage.")


@app.command()
def settings(
    ctx: typer.Context,
    activity: Annotated[str | None, typer.Argument(help="Activity to change")] = None,
    minutes: Annotated[int | None, typer.Argument(help="Default goal minutes")] = None,
    reset: Annotated[bool, typer.Option("--reset")] = False,
) -> None:
    """Show or change default timer goals."""
    parsed = parse_activity(activity) if activity else None
    asyncio.run(_do_settings(ctx.obj, parsed, minutes, reset))


async def _do_settings(
    config: Config, activity: ActivityType | None, minutes: int | None, reset: bool
) -> None:
    async with _services(config, require_restored=False) as services:
        svc = services.settings_service
        if reset:
            current = await svc.reset()
        elif activity is not None and minutes is not None:
            current = _unwrap(await svc.set_goal_minutes(activity, minutes))
        else:
            current = await svc.get_timer_settings()
    for item in ActivityType:
        typer.echo(f"{item.value:<20} {current.goal_for(item):>4} min")


@app.command()
def plan(
    ctx: typer.Context,
    description: Annotated[str, typer.Argument(help="Free-text plan")],
    start: Annotated[str | None, typer.Option("--start", help="YYYY-MM-DD")] = None,
    end: Annotated[str | None, typer.Option("--end", help="YYYY-MM-DD")] = None,
    out_dir: Annotated[Path, typer.Option("--dir", "-d")] = Path("."),
) -> None:
    """Turn a plan into scheduled activities and an .ics file."""
    try:
        start_day = date.fromisoformat(start) if start else date.today()
        end_day = date.fromisoformat(end) if end else start_day + timedelta(days=6)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if end_day < start_day:
        raise typer.BadParameter("--end must not be before --start")
    asyncio.run(_do_plan(ctx.obj, description, start_day, end_day, out_dir))


async def _do_plan(
    config: Config, description: str, start_day: date, end_day: date, out_dir: Path
) -> None:
    async with _services(config) as services:
        activities = await services.ai_service.parse_multi_day_plan(description, start_day, end_day)
    if not activities:
        typer.secho(
            "Could not parse the plan. Check your AI settings or rephrase it.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)
    for activity in activities:
        typer.echo(
            f"{activity.date.isoformat()} {activity.start_time}  "
            f"{activity.duration_minutes:>3} min  {activity.activity_type.value}: {activity.title}"
        )
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / plan_filename(start_day, end_day)
    target.write_text(build_calendar(activities), encoding="utf-8")
    typer.echo(str(target))
