"""
Command Line Interface for ChronOS.

Drives the timeline core from a terminal: annotate weeks with events, manage
event types, fill weeks and create week notes. Every change is saved to the
settings file immediately.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from chronos import __version__
from chronos.config import AppConfig, ConfigFileError, get_config, load_config
from chronos.core.autofill import (
    WEEKDAY_NAMES,
    AutoFillScheduler,
    apply_auto_fill,
    should_auto_fill_today,
)
from chronos.core.chronology import (
    decade_markers,
    full_week_age,
    month_markers,
    week_index_for_key,
    week_markers,
)
from chronos.core.errors import ChronosError
from chronos.core.events import TimelineStore, build_event
from chronos.core.models import MarkerFrequency, RangeEvent, TimelineSettings
from chronos.core.notes import NoteWriter, event_note, week_note
from chronos.core.resolver import legend, resolve_cell
from chronos.core.weeks import date_range_label, is_week_key, week_key_from_date
from chronos.storage import SettingsRepository
from chronos.utils.logging import setup_logging

logger = logging.getLogger(__name__)

console = Console()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(text, style="bold blue", expand=False))


def print_success(text: str) -> None:
    console.print(f"[bold green]✓[/bold green] {text}")


def print_warning(text: str) -> None:
    console.print(f"[bold yellow]⚠[/bold yellow] {text}")


def print_error(text: str) -> None:
    console.print(f"[bold red]✗[/bold red] {text}")


def fail(text: str) -> None:
    """Print an error and exit with status 1."""
    print_error(text)
    sys.exit(1)


def _persist(repo: SettingsRepository):
    def save(settings: TimelineSettings) -> None:
        if not repo.save(settings):
            print_warning(f"Changes kept in memory but could not be saved to {repo.path}")

    return save


def _store(ctx: click.Context) -> TimelineStore:
    return ctx.obj["store"]


def _config(ctx: click.Context) -> AppConfig:
    return ctx.obj["config"]


def _now(ctx: click.Context) -> datetime:
    return ctx.obj["now"]()


def _parse_weekday(value: str) -> int:
    if value.isdigit() and 0 <= int(value) <= 6:
        return int(value)
    for index, name in enumerate(WEEKDAY_NAMES):
        if name.lower().startswith(value.lower()) and len(value) >= 2:
            return index
    raise click.BadParameter(f"Unknown weekday: {value}")


def _ensure_note(ctx: click.Context, spec) -> Optional[Path]:
    writer = NoteWriter(_config(ctx).paths.notes_dir)
    path = writer.ensure(spec)
    if path is None:
        print_warning(f"Could not create note {spec.path}")
    return path


# =============================================================================
# MAIN CLI GROUP
# =============================================================================


@click.group()
@click.version_option(__version__, prog_name="ChronOS")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Custom config file")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file (default with --debug: <log_dir>/chronos.log)",
)
@click.option(
    "--settings-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Timeline settings file (overrides config)",
)
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    hidden=True,
    help="Pretend the current date is this day",
)
@click.pass_context
def cli(ctx, verbose, debug, config_path, log_file, settings_file, today):
    """
    ChronOS - your life in weeks.

    Track major life events, travel, relationships and plans on a grid with
    one square per week of your life.
    """
    try:
        config = load_config(config_path) if config_path else get_config()
    except ConfigFileError as e:
        fail(str(e))

    if debug or config.debug:
        level = "DEBUG"
    elif verbose or config.verbose:
        level = "INFO"
    else:
        level = config.log_level()
    if log_file is None and debug:
        log_file = config.paths.log_dir / "chronos.log"
    setup_logging(level=level, log_file=log_file)

    repo = SettingsRepository(settings_file or config.paths.settings_file)
    store = TimelineStore(repo.load_or_default(), listeners=[_persist(repo)])

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["repo"] = repo
    ctx.obj["store"] = store
    ctx.obj["now"] = (lambda: today) if today else datetime.now


# =============================================================================
# WEEK / STATUS COMMANDS
# =============================================================================


@cli.command()
@click.argument("day", required=False, type=click.DateTime(formats=["%Y-%m-%d"]))
@click.pass_context
def week(ctx, day):
    """Show the week key and date range for DAY (default: today)."""
    settings = _store(ctx).settings
    key = week_key_from_date(day or _now(ctx))
    console.print(f"[bold cyan]{key}[/bold cyan]  {date_range_label(key, settings.start_week_on_monday)}")


@cli.command()
@click.pass_context
def status(ctx):
    """Summarize age in weeks, the current week and stored data."""
    settings = _store(ctx).settings
    now = _now(ctx)
    age = full_week_age(settings.birthday, now)
    total = settings.lifespan * 52
    key = week_key_from_date(now)
    cell = resolve_cell(
        settings,
        key,
        age,
        now,
        window_days=_config(ctx).scheduler.upcoming_window_days,
    )

    print_header("life in weeks")
    table = Table(show_header=False, box=None)
    table.add_column(style="cyan")
    table.add_column()
    table.add_row("Birthday", settings.birthday.isoformat())
    table.add_row("Weeks lived", f"{age:,} of {total:,} ({max(age, 0) / total:.1%})")
    table.add_row("This week", f"{key} ({date_range_label(key, settings.start_week_on_monday)})")
    table.add_row("This week's event", cell.tooltip if cell.has_event else "-")
    table.add_row("Filled weeks", str(len(settings.filled_weeks)))
    table.add_row("Events", str(sum(len(v) for v in settings.events.values())))
    table.add_row("Custom types", str(len(settings.custom_event_types)))
    console.print(table)
    console.print(f"\n[italic]{settings.quote}[/italic]")


@cli.command()
@click.argument("week_key")
@click.pass_context
def cell(ctx, week_key):
    """Show how the grid cell for WEEK_KEY is resolved."""
    settings = _store(ctx).settings
    index = week_index_for_key(settings.birthday, week_key)
    if index is None:
        fail(f"Invalid week key: {week_key}")
    descriptor = resolve_cell(
        settings,
        week_key,
        index,
        _now(ctx),
        window_days=_config(ctx).scheduler.upcoming_window_days,
    )
    table = Table(show_header=False, box=None)
    table.add_column(style="cyan")
    table.add_column()
    for field, value in descriptor.model_dump(mode="json").items():
        table.add_row(field, "-" if value is None else str(value))
    console.print(table)


# =============================================================================
# EVENT COMMANDS
# =============================================================================


@cli.command("add-event")
@click.argument("description")
@click.option("--date", "-d", "start", required=True, help="Date (YYYY-MM-DD) or week key")
@click.option("--end", "-e", help="End date or week key; makes this a range event")
@click.option("--category", "-c", default="Major Life", show_default=True, help="Event type")
@click.option("--color", help="Color for a new custom event type")
@click.option("--note/--no-note", default=True, help="Create a note for the event")
@click.pass_context
def add_event(ctx, description, start, end, category, color, note):
    """Add a life event to the timeline."""
    store = _store(ctx)
    try:
        record = build_event(description, start, end, is_range=end is not None)
        store.add_event(category, record, color=color)
    except ChronosError as e:
        fail(str(e))

    print_success(f"Event added: {record.description}")
    if note:
        path = _ensure_note(ctx, event_note(record, category, store.settings.notes_folder))
        if path is not None:
            console.print(f"  Note: {path}", soft_wrap=True)


@cli.command()
@click.option("--category", "-c", help="Only list this event type")
@click.pass_context
def events(ctx, category):
    """List recorded events."""
    settings = _store(ctx).settings
    table = Table(title="Life Events")
    table.add_column("Type", style="cyan")
    table.add_column("Week(s)")
    table.add_column("Description")

    for cat in settings.categories():
        if category and cat.name != category:
            continue
        for record in settings.events_for(cat.name):
            if isinstance(record, RangeEvent):
                weeks = f"{record.start_week_key} → {record.end_week_key}"
            else:
                weeks = record.week_key
            table.add_row(f"[{cat.color}]■[/] {cat.name}", weeks, record.description)

    if not table.rows:
        console.print("No events recorded yet.")
        return
    console.print(table)


# =============================================================================
# CATEGORY COMMANDS
# =============================================================================


@cli.group()
def category():
    """Manage event types."""


@category.command("list")
@click.pass_context
def category_list(ctx):
    """List built-in and custom event types."""
    settings = _store(ctx).settings
    table = Table(title="Event Types")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Events", justify="right")
    table.add_column("Kind")
    for cat in settings.categories():
        table.add_row(
            f"[{cat.color}]■[/] {cat.name}",
            cat.color,
            str(len(settings.events_for(cat.name))),
            "built-in" if cat.built_in else "custom",
        )
    console.print(table)


@category.command("add")
@click.argument("name")
@click.option("--color", default="#FF9800", show_default=True)
@click.pass_context
def category_add(ctx, name, color):
    """Create a custom event type."""
    try:
        created = _store(ctx).add_category(name, color)
    except ChronosError as e:
        fail(str(e))
    print_success(f'Event type "{created.name}" added')


@category.command("rename")
@click.argument("old_name")
@click.argument("new_name")
@click.option("--color", help="New color")
@click.pass_context
def category_rename(ctx, old_name, new_name, color):
    """Rename (and optionally recolor) a custom event type."""
    try:
        updated = _store(ctx).rename_category(old_name, new_name, color)
    except ChronosError as e:
        fail(str(e))
    print_success(f'Event type updated to "{updated.name}"')


@category.command("remove")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def category_remove(ctx, name, yes):
    """Delete a custom event type and all of its events."""
    store = _store(ctx)
    if not yes and not click.confirm(
        f'Delete the event type "{name}"? All events of this type will also be deleted.'
    ):
        console.print("Cancelled.")
        return
    if not store.remove_category(name):
        fail(f'Event type "{name}" is built-in or does not exist')
    print_success(f'Event type "{name}" deleted')


@category.command("clear")
@click.argument("name", required=False)
@click.option("--custom", "all_custom", is_flag=True, help="Clear every custom event type")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def category_clear(ctx, name, all_custom, yes):
    """Remove all events of NAME (or of every custom type with --custom)."""
    if not name and not all_custom:
        fail("Give an event type name or --custom")
    target = "all custom events" if all_custom else f'all "{name}" events'
    if not yes and not click.confirm(f"Clear {target}?"):
        console.print("Cancelled.")
        return
    store = _store(ctx)
    try:
        removed = store.clear_custom_events() if all_custom else store.clear_category(name)
    except ChronosError as e:
        fail(str(e))
    print_success(f"Cleared {target} ({removed} removed)")


# =============================================================================
# FILL COMMANDS
# =============================================================================


@cli.command()
@click.argument("week_key", required=False)
@click.pass_context
def fill(ctx, week_key):
    """Toggle the filled mark on WEEK_KEY (default: this week)."""
    store = _store(ctx)
    if not store.settings.enable_manual_fill:
        fail("Manual filling is disabled (enable it with: chronos configure --manual-fill)")
    week_key = week_key or week_key_from_date(_now(ctx))
    if not is_week_key(week_key):
        fail(f"Invalid week key: {week_key}")
    filled = store.toggle_filled(week_key)
    print_success(f"{week_key} {'filled' if filled else 'unfilled'}")


@cli.command()
@click.option("--watch", is_flag=True, help="Keep running and check periodically")
@click.option("--ticks", type=int, hidden=True, help="Stop --watch after this many checks")
@click.pass_context
def autofill(ctx, watch, ticks):
    """Fill the current week if today is the configured auto-fill day."""
    store = _store(ctx)
    if watch:
        scheduler = AutoFillScheduler(
            store,
            interval_seconds=_config(ctx).scheduler.check_interval_seconds,
            clock=ctx.obj["now"],
        )
        filled = scheduler.run(max_ticks=ticks)
        print_success(f"Auto-fill stopped ({filled} week(s) filled)")
        return

    decision = should_auto_fill_today(store.settings, _now(ctx))
    if apply_auto_fill(store, _now(ctx)):
        print_success(f"Filled {decision.week_key}")
    else:
        console.print(f"Nothing to do: {decision.reason}")


# =============================================================================
# NOTES / MARKERS
# =============================================================================


@cli.command()
@click.argument("week_key", required=False)
@click.pass_context
def note(ctx, week_key):
    """Create (if missing) and print the note for WEEK_KEY (default: this week)."""
    settings = _store(ctx).settings
    week_key = week_key or week_key_from_date(_now(ctx))
    spec = week_note(week_key, settings.notes_folder)
    if spec is None:
        fail(f"Invalid week key: {week_key}")
    path = _ensure_note(ctx, spec)
    if path is None:
        sys.exit(1)
    console.print(str(path), soft_wrap=True)


@cli.command()
@click.option(
    "--rail",
    type=click.Choice(["month", "decade", "week"]),
    default="month",
    show_default=True,
    help="Which rail to list",
)
@click.option(
    "--frequency",
    type=click.Choice([f.value for f in MarkerFrequency]),
    help="Override the configured month marker frequency",
)
@click.option("--limit", type=int, default=24, show_default=True, help="Markers to show")
@click.pass_context
def markers(ctx, rail, frequency, limit):
    """List month markers from birth onwards, or the decade/week rails."""
    settings = _store(ctx).settings
    if rail != "month":
        layout = _config(ctx).layout.to_layout(settings.zoom_level)
        if rail == "decade":
            axis = decade_markers(settings.lifespan, layout)
        else:
            axis = week_markers(layout)
        table = Table(title=f"{rail.title()} Markers")
        table.add_column("Label", justify="right")
        table.add_column("Position (px)", justify="right")
        for marker in axis[:limit]:
            table.add_row(marker.label, f"{marker.position:g}")
        console.print(table)
        return

    table = Table(title="Month Markers")
    table.add_column("Week", justify="right")
    table.add_column("Label")
    table.add_column("Month")
    found = month_markers(
        settings.birthday, settings.lifespan, frequency or settings.month_marker_frequency
    )
    for marker in found[:limit]:
        flags = " 🎂" if marker.is_birth_month and settings.show_birthday_marker else ""
        table.add_row(str(marker.week_index), marker.label, marker.full_label + flags)
    console.print(table)


@cli.command("legend")
@click.pass_context
def show_legend(ctx):
    """Show the legend colors."""
    for label, color in legend(_store(ctx).settings):
        console.print(f"[{color}]■[/] {label}")


# =============================================================================
# CONFIGURE
# =============================================================================


@cli.command()
@click.option("--birthday", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--lifespan", type=int)
@click.option("--auto-fill/--no-auto-fill", default=None)
@click.option("--auto-fill-day", help="Weekday name or number (Sunday=0)")
@click.option("--manual-fill/--no-manual-fill", default=None)
@click.option("--month-markers", type=click.Choice([f.value for f in MarkerFrequency]))
@click.option("--zoom", type=float)
@click.option("--week-start", type=click.Choice(["monday", "sunday"]))
@click.option("--notes-folder")
@click.option("--quote")
@click.option("--past-color")
@click.option("--present-color")
@click.option("--future-color")
@click.pass_context
def configure(ctx, **options):
    """Update timeline settings."""
    changes = {}
    mapping = {
        "lifespan": "lifespan",
        "auto_fill": "enable_auto_fill",
        "manual_fill": "enable_manual_fill",
        "month_markers": "month_marker_frequency",
        "zoom": "zoom_level",
        "notes_folder": "notes_folder",
        "quote": "quote",
        "past_color": "past_cell_color",
        "present_color": "present_cell_color",
        "future_color": "future_cell_color",
    }
    for option, field in mapping.items():
        if options[option] is not None:
            changes[field] = options[option]
    if options["birthday"] is not None:
        changes["birthday"] = options["birthday"].date()
    if options["auto_fill_day"] is not None:
        changes["auto_fill_day"] = _parse_weekday(options["auto_fill_day"])
    if options["week_start"] is not None:
        changes["start_week_on_monday"] = options["week_start"] == "monday"

    if not changes:
        console.print("Nothing to change.")
        return
    try:
        _store(ctx).update_settings("Settings updated from CLI", **changes)
    except ValidationError as e:
        fail(f"Invalid setting: {e.errors()[0]['msg']}")
    print_success(f"Updated {', '.join(sorted(changes))}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
