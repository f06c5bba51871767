"""
Command-line interface for the lesson planner.

Usage:
    python -m planner validate timetable.json
    python -m planner import timetable.json
    python -m planner week --date 2026-02-09
    python -m planner occurrences 12G2 --weeks 4
    python -m planner lesson add 12G2 --title "Forces"
    python -m planner push-back 12G2
    python -m planner holiday add "February half term" 2026-02-16 2026-02-20
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .data.generator import generate_demo_timetable, save_demo_timetable
from .data.loader import (
    TimetableValidationError,
    load_document,
    save_document,
    validate_timetable_document,
)
from .data.models import TimetableDocument, day_name
from .logging import setup_logging
from .output.metrics import sequence_progress
from .output.schema import create_class_plan
from .remapping import RemapConflictError, RemappingEngine, migrate_legacy_instances
from .sequence import (
    LessonContentSequence,
    SequenceOrderError,
    SequenceScheduleBinding,
    UnknownLessonError,
)
from .store import JsonFileStore, KeyValueStore, StoreError
from .timetable.dates import format_week_range, get_monday, parse_date
from .timetable.holidays import HolidayCalendar
from .timetable.occurrences import OccurrenceGenerator
from .timetable.views import duties_for_week, week_lessons

# Create Typer app
app = typer.Typer(
    name="planner",
    help="Lesson planner: project a recurring timetable and bind lesson content to it.",
    add_completion=False,
)
holiday_app = typer.Typer(help="Manage holiday periods.")
lesson_app = typer.Typer(help="Manage a class's lesson sequence.")
app.add_typer(holiday_app, name="holiday")
app.add_typer(lesson_app, name="lesson")

# Rich console for pretty output
console = Console()


# =============================================================================
# Context
# =============================================================================

@dataclass
class PlannerContext:
    """State shared by every command of one invocation."""
    store: KeyValueStore
    today: date
    horizon_weeks: int
    remap_horizon_weeks: int

    def calendar(self) -> HolidayCalendar:
        return HolidayCalendar.load(self.store)

    def sequence(self) -> LessonContentSequence:
        return LessonContentSequence(self.store)

    def generator(self, document: TimetableDocument) -> OccurrenceGenerator:
        return OccurrenceGenerator(document, self.calendar(), self.today)

    def binding(self, document: Optional[TimetableDocument] = None) -> SequenceScheduleBinding:
        generator = self.generator(document) if document is not None else None
        return SequenceScheduleBinding(self.store, self.sequence(), generator, self.horizon_weeks)


@app.callback()
def callback(
    ctx: typer.Context,
    store: Optional[Path] = typer.Option(
        None,
        "--store", "-s",
        help="JSON file holding planner state (default: PLANNER_STORE_PATH)",
    ),
    today: Optional[str] = typer.Option(
        None,
        "--today",
        help="Treat this ISO date as today",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level for stderr diagnostics",
    ),
) -> None:
    """Lesson planner."""
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=log_level or config.log_level)

    try:
        today_date = parse_date(today) if today else date.today()
    except ValueError:
        _fail(f"Invalid --today date: {today}")

    ctx.obj = PlannerContext(
        store=JsonFileStore(store or config.store_path),
        today=today_date,
        horizon_weeks=config.horizon_weeks,
        remap_horizon_weeks=config.remap_horizon_weeks,
    )


# =============================================================================
# Helper Functions
# =============================================================================

def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def _state(ctx: typer.Context) -> PlannerContext:
    return ctx.obj


def _require_document(state: PlannerContext) -> TimetableDocument:
    """Load the active timetable or exit."""
    try:
        document = load_document(state.store)
    except (StoreError, TimetableValidationError) as e:
        _fail(str(e))
    if document is None:
        _fail("No timetable loaded. Run 'planner import FILE' or 'planner demo' first.")
    return document


def _require_class(document: TimetableDocument, class_id: str) -> None:
    if document.get_class(class_id) is None:
        _fail(f"Class '{class_id}' not found. Available classes: {', '.join(document.class_ids)}")


def _parse_date_arg(value: str, label: str) -> date:
    try:
        return parse_date(value)
    except ValueError:
        _fail(f"Invalid {label}: {value} (expected YYYY-MM-DD)")


def _read_json(path: Path) -> Any:
    if not path.exists():
        _fail(f"File not found: {path}")
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON: {e}")


def _print_document_summary(document: TimetableDocument) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Value", style="white")

    summary = document.summary()
    table.add_row("Teacher", escape(summary["teacher"]))
    table.add_row("Timetable", "two-week" if summary["two_week_timetable"] else "weekly")
    if summary["anchor_date"]:
        table.add_row("Week 1 anchor", summary["anchor_date"])
    table.add_row("Classes", str(summary["classes"]))
    table.add_row("Recurring lessons", str(summary["recurring_lessons"]))
    table.add_row("Duties", str(summary["duties"]))
    console.print(table)


def _remap_instances(
    state: PlannerContext,
    old_calendar: HolidayCalendar,
    new_calendar: HolidayCalendar,
) -> bool:
    """
    Move date-keyed lesson records for a holiday change, before the change is saved.

    Exits without writing anything if the timetable cannot be read or the
    records cannot all be moved.
    """
    try:
        document = load_document(state.store)
    except (StoreError, TimetableValidationError) as e:
        _fail(str(e))
    if document is None:
        return False
    engine = RemappingEngine(document, state.today, state.remap_horizon_weeks)
    try:
        return engine.apply(state.store, old_calendar, new_calendar)
    except RemapConflictError as e:
        _fail(f"{e}. Holidays were not changed.")


# =============================================================================
# Timetable Commands
# =============================================================================

@app.command()
def validate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to timetable JSON file to validate",
    ),
) -> None:
    """
    Validate a timetable export without importing it.

    Example:
        python -m planner validate timetable.json
    """
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    console.print("[cyan]1. Checking JSON syntax...[/cyan]")
    raw_data = _read_json(input_file)
    console.print("   [green]JSON syntax is valid[/green]")

    console.print("[cyan]2. Validating against schema...[/cyan]")
    try:
        document = validate_timetable_document(raw_data)
    except TimetableValidationError as e:
        console.print("   [red]Schema validation failed:[/red]")
        for error in e.errors:
            console.print(f"   - {escape(error)}")
        raise typer.Exit(code=1)
    console.print("   [green]Schema validation passed[/green]")

    console.print("[cyan]3. Checking logical consistency...[/cyan]")
    warnings = document.consistency_warnings()
    if warnings:
        console.print("   [yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"   - {escape(w)}")
    else:
        console.print("   [green]No logical consistency issues[/green]")

    console.print("\n[bold]Summary:[/bold]")
    _print_document_summary(document)
    console.print("\n[green]Validation complete.[/green]\n")


@app.command("import")
def import_timetable(
    ctx: typer.Context,
    input_file: Path = typer.Argument(..., help="Path to timetable JSON file"),
) -> None:
    """
    Import a timetable export, replacing the active timetable.

    Lesson sequences and holidays are kept.
    """
    state = _state(ctx)
    raw_data = _read_json(input_file)
    try:
        document = validate_timetable_document(raw_data)
    except TimetableValidationError as e:
        console.print("[red]Error:[/red] Invalid timetable format:")
        for error in e.errors:
            console.print(f"  - {escape(error)}")
        raise typer.Exit(code=1)

    save_document(state.store, document)
    console.print(f"[green]Imported[/green] timetable for {escape(document.teacher.name)}")
    for w in document.consistency_warnings():
        console.print(f"  [yellow]warning:[/yellow] {escape(w)}")
    _print_document_summary(document)


@app.command()
def demo(
    ctx: typer.Context,
    two_week: bool = typer.Option(False, "--two-week", help="Use the fortnightly variant"),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write the demo JSON to a file instead of importing it",
    ),
) -> None:
    """Load the built-in demo timetable."""
    if output:
        save_demo_timetable(output, two_week=two_week)
        console.print(f"[green]Demo timetable saved to:[/green] {output}")
        return

    document = generate_demo_timetable(two_week=two_week)
    save_document(_state(ctx).store, document)
    console.print(f"[green]Imported[/green] demo timetable for {document.teacher.name}")
    _print_document_summary(document)


@app.command()
def week(
    ctx: typer.Context,
    on: Optional[str] = typer.Option(None, "--date", "-d", help="Any date in the week (default: today)"),
) -> None:
    """Show the lessons and duties for one week."""
    state = _state(ctx)
    document = _require_document(state)
    calendar = state.calendar()
    monday = get_monday(_parse_date_arg(on, "--date") if on else state.today)

    title = f"Week of {format_week_range(monday)}"
    if document.anchor_date is not None and not calendar.is_holiday_week(monday):
        title += f" (Week {calendar.week_parity(monday, document.anchor_date)})"

    if calendar.is_holiday_week(monday):
        name = calendar.holiday_name_for_date(monday) or "Holiday"
        console.print(Panel(f"[bold]{escape(name)}[/bold]: no lessons this week", title=title))
        return

    lessons = week_lessons(document, calendar, monday)
    duties = duties_for_week(document, calendar, monday)

    table = Table(title=title)
    table.add_column("Day", style="cyan")
    table.add_column("Period")
    table.add_column("Time")
    table.add_column("Class", style="bold")
    table.add_column("Room")

    for dow in range(1, 6):
        day_label = day_name(dow)
        for item in lessons.get(dow, []):
            day = item.date
            holiday = calendar.holiday_name_for_date(day)
            table.add_row(
                day_label,
                item.lesson.period,
                f"{item.start_time}-{item.end_time}",
                escape(item.class_name) if not holiday else f"[dim]{escape(item.class_name)} ({escape(holiday)})[/dim]",
                escape(item.lesson.room or ""),
            )
            day_label = ""
        for item in duties.get(dow, []):
            table.add_row(
                day_label,
                item.duty.period,
                f"{item.duty.start_time}-{item.duty.end_time}",
                f"[magenta]{escape(item.duty.activity)}[/magenta]",
                "",
            )
            day_label = ""

    console.print(table)


@app.command()
def occurrences(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    weeks: Optional[int] = typer.Option(None, "--weeks", "-w", min=1, help="Horizon in weeks"),
) -> None:
    """List a class's upcoming occurrences with the lesson bound to each."""
    state = _state(ctx)
    document = _require_document(state)
    _require_class(document, class_id)

    horizon = weeks or state.horizon_weeks
    binding = state.binding(document)
    start = binding.start_index(class_id)
    entries = binding.sequence.get(class_id)

    table = Table(title=f"{escape(document.class_name(class_id))}: next {horizon} weeks")
    table.add_column("#", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Period")
    table.add_column("Time")
    table.add_column("Lesson")

    for occ in binding.generator.generate(class_id, horizon):
        position = occ.occurrence_num - start
        entry = entries[position] if 0 <= position < len(entries) else None
        day_label = day_name(occ.day_of_week)
        if occ.week_number is not None:
            day_label += f" (W{occ.week_number})"
        table.add_row(
            str(occ.occurrence_num),
            occ.date_iso,
            day_label,
            occ.period_label,
            f"{occ.start_time}-{occ.end_time}",
            escape(entry.title or "(untitled)") if entry else "[dim]-[/dim]",
        )

    console.print(table)


# =============================================================================
# Holiday Commands
# =============================================================================

@holiday_app.command("add")
def holiday_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Holiday name"),
    start: str = typer.Argument(..., help="First day (YYYY-MM-DD)"),
    end: str = typer.Argument(..., help="Last day (YYYY-MM-DD)"),
) -> None:
    """Add a holiday and move saved lesson records to the new dates."""
    state = _state(ctx)
    start_date = _parse_date_arg(start, "start date")
    end_date = _parse_date_arg(end, "end date")

    old_calendar = state.calendar()
    new_calendar = old_calendar.copy()
    holiday = new_calendar.add_holiday(name, start_date, end_date)
    if holiday is None:
        _fail("End date must be on or after start date")

    moved = _remap_instances(state, old_calendar, new_calendar)
    new_calendar.save(state.store)
    console.print(f"[green]Added[/green] {escape(str(holiday))} [dim]({holiday.id})[/dim]")
    if holiday.full_week_mondays:
        console.print(f"  {len(holiday.full_week_mondays)} full week(s) skipped")
    if moved:
        console.print("[dim]Saved lesson records moved to the new dates.[/dim]")


@holiday_app.command("remove")
def holiday_remove(
    ctx: typer.Context,
    holiday_id: str = typer.Argument(..., help="Holiday ID (see 'holiday list')"),
) -> None:
    """Remove a holiday and move saved lesson records to the new dates."""
    state = _state(ctx)
    old_calendar = state.calendar()
    new_calendar = old_calendar.copy()
    if not new_calendar.remove_holiday(holiday_id):
        _fail(f"Holiday '{holiday_id}' not found")

    moved = _remap_instances(state, old_calendar, new_calendar)
    new_calendar.save(state.store)
    console.print(f"[green]Removed[/green] holiday {holiday_id}")
    if moved:
        console.print("[dim]Saved lesson records moved to the new dates.[/dim]")


@holiday_app.command("list")
def holiday_list(ctx: typer.Context) -> None:
    """List configured holidays."""
    calendar = _state(ctx).calendar()
    if not len(calendar):
        console.print("No holidays configured.")
        return

    table = Table(title="Holidays")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Full weeks", justify="right")
    for holiday in calendar:
        table.add_row(
            holiday.id,
            escape(holiday.name),
            holiday.start_date.isoformat(),
            holiday.end_date.isoformat(),
            str(len(holiday.full_week_mondays)),
        )
    console.print(table)


# =============================================================================
# Lesson Sequence Commands
# =============================================================================

def _lesson_fields(
    title: Optional[str],
    notes: Optional[str],
    links: Optional[list[str]],
    topic: Optional[str],
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if title is not None:
        fields["title"] = title
    if notes is not None:
        fields["notes"] = notes
    if links:
        fields["links"] = [{"url": url} for url in links]
    if topic is not None:
        fields["topicName"] = topic
        fields["topicId"] = topic.lower().replace(" ", "-")
    return fields


@lesson_app.command("add")
def lesson_add(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    title: str = typer.Option("", "--title", "-t"),
    notes: str = typer.Option("", "--notes", "-n"),
    link: Optional[list[str]] = typer.Option(None, "--link", "-l", help="Resource URL (repeatable)"),
    topic: Optional[str] = typer.Option(None, "--topic", help="Topic name"),
) -> None:
    """Append a lesson to the end of a class's sequence."""
    state = _state(ctx)
    document = _require_document(state)
    _require_class(document, class_id)

    entry = state.sequence().append(class_id, _lesson_fields(title, notes, link, topic))
    console.print(f"[green]Added[/green] lesson {entry.order} [dim]({entry.id})[/dim] to {class_id}")


@lesson_app.command("edit")
def lesson_edit(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    lesson_id: str = typer.Argument(..., help="Lesson ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n"),
    link: Optional[list[str]] = typer.Option(None, "--link", "-l", help="Replace links (repeatable)"),
    topic: Optional[str] = typer.Option(None, "--topic", help="Topic name"),
) -> None:
    """Change a lesson's content. Its position is never changed."""
    state = _state(ctx)
    patch = _lesson_fields(title, notes, link, topic)
    if not patch:
        _fail("Nothing to change: pass --title, --notes, --link or --topic")
    try:
        entry = state.sequence().update(class_id, lesson_id, patch)
    except UnknownLessonError:
        _fail(f"Lesson '{lesson_id}' not found in {class_id}")
    console.print(f"[green]Updated[/green] lesson {entry.order} [dim]({entry.id})[/dim]")


@lesson_app.command("delete")
def lesson_delete(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    lesson_id: str = typer.Argument(..., help="Lesson ID"),
) -> None:
    """Delete a lesson; later lessons move up one place."""
    state = _state(ctx)
    try:
        state.sequence().delete(class_id, lesson_id)
    except UnknownLessonError:
        _fail(f"Lesson '{lesson_id}' not found in {class_id}")
    console.print(f"[green]Deleted[/green] {lesson_id}")


@lesson_app.command("reorder")
def lesson_reorder(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    lesson_ids: list[str] = typer.Argument(..., help="Every lesson ID once, in the new order"),
) -> None:
    """Reorder a class's sequence. Dates stay with positions, not lessons."""
    state = _state(ctx)
    try:
        state.binding().reorder(class_id, lesson_ids)
    except SequenceOrderError as e:
        _fail(str(e))
    console.print(f"[green]Reordered[/green] {len(lesson_ids)} lessons for {class_id}")


@lesson_app.command("move")
def lesson_move(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    lesson_id: str = typer.Argument(..., help="Lesson ID"),
    position: int = typer.Argument(..., help="New position (0-based)"),
) -> None:
    """Move one lesson to a new position."""
    state = _state(ctx)
    try:
        state.sequence().move(class_id, lesson_id, position)
    except UnknownLessonError:
        _fail(f"Lesson '{lesson_id}' not found in {class_id}")
    except SequenceOrderError as e:
        _fail(str(e))
    console.print(f"[green]Moved[/green] {lesson_id} to position {position}")


@lesson_app.command("list")
def lesson_list(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
) -> None:
    """List a class's sequence with the date each lesson is taught."""
    state = _state(ctx)
    document = _require_document(state)
    _require_class(document, class_id)

    binding = state.binding(document)
    items = binding.scheduled_lessons(class_id)
    if not items:
        console.print(f"No lessons planned for {class_id}.")
        return

    table = Table(title=f"{escape(document.class_name(class_id))} lesson sequence")
    table.add_column("#", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Topic")
    table.add_column("Date", style="cyan")
    table.add_column("Period")
    for item in items:
        occ = item.occurrence
        table.add_row(
            str(item.entry.order),
            item.entry.id,
            escape(item.entry.title or "(untitled)"),
            escape(item.entry.topic_name or ""),
            occ.date_iso if occ else "[dim]unscheduled[/dim]",
            occ.period_label if occ else "",
        )
    console.print(table)

    progress = sequence_progress(binding, class_id)
    console.print(
        f"Start index {binding.start_index(class_id)}; "
        f"{progress.scheduled}/{progress.total} scheduled ({progress.percent_complete}%)"
    )


# =============================================================================
# Alignment Commands
# =============================================================================

@app.command("push-back")
def push_back(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
) -> None:
    """Delay every lesson of a class by one occurrence."""
    state = _state(ctx)
    start = state.binding().push_back(class_id)
    console.print(f"[green]Pushed back[/green] {class_id}: start index is now {start}")


@app.command()
def reset(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
) -> None:
    """Bind the first lesson to the next occurrence again."""
    state = _state(ctx)
    state.binding().reset_alignment(class_id)
    console.print(f"[green]Reset[/green] {class_id}: start index is now 0")


@app.command()
def sync(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    lesson_order: int = typer.Argument(..., min=0, help="Position of the lesson in the sequence"),
    target: str = typer.Argument(..., help="Date the lesson should be taught on or after"),
    start_time: Optional[str] = typer.Option(None, "--time", help="Prefer the meeting nearest HH:MM"),
) -> None:
    """Shift a class's sequence so one lesson lands on a chosen date."""
    state = _state(ctx)
    document = _require_document(state)
    _require_class(document, class_id)
    target_date = _parse_date_arg(target, "target date")

    try:
        new_start = state.binding(document).sync_to_date(class_id, lesson_order, target_date, start_time)
    except ValueError as e:
        _fail(str(e))
    if new_start is None:
        console.print(f"[yellow]No {class_id} lesson on or after {target_date}; nothing changed.[/yellow]")
        return
    console.print(f"[green]Synced[/green] {class_id}: start index is now {new_start}")


@app.command()
def migrate(ctx: typer.Context) -> None:
    """Convert date-keyed lesson records into lesson sequences (runs once)."""
    if migrate_legacy_instances(_state(ctx).store):
        console.print("[green]Migration complete.[/green]")
    else:
        console.print("Nothing to migrate.")


@app.command()
def export(
    ctx: typer.Context,
    class_id: str = typer.Argument(..., help="Class ID"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to a file"),
    weeks: Optional[int] = typer.Option(None, "--weeks", "-w", min=1, help="Horizon in weeks"),
) -> None:
    """Export a class's plan (occurrences with bound lessons) as JSON."""
    state = _state(ctx)
    document = _require_document(state)
    _require_class(document, class_id)

    horizon = weeks or state.horizon_weeks
    plan = create_class_plan(document, state.binding(document), class_id, horizon)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            f.write(plan.to_json())
        console.print(f"[green]Plan saved to:[/green] {output}")
    else:
        console.print_json(plan.to_json())


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    try:
        app()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
