"""Command-line interface for the Follow-up Journey Engine."""

import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from followup import __version__
from followup.config.settings import get_settings
from followup.engine import (
    STAGE_ORDER,
    classify_notes,
    derive_timeline,
    find_already_shared,
    scan,
    status_label,
    validate as validate_draft,
)
from followup.errors import FetchError
from followup.models import ClassifiedNote, Note, NoteDraft, StageStatus
from followup.store import NoteStoreClient
from followup.time_utils import format_display_date, reference_today

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="followup",
    help="Follow-up Journey Engine - stage timelines, reminders and share checks",
    add_completion=False,
)
console = Console()

STATUS_STYLES = {
    StageStatus.COMPLETED: "green",
    StageStatus.CURRENT: "bold blue",
    StageStatus.SKIPPED: "yellow",
    StageStatus.PENDING: "dim",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def _parse_today(value: str | None) -> date:
    if not value:
        return reference_today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")


def _read_notes_file(path: Path) -> list[Note]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("results", [])
    return [Note.from_record(record) for record in data if isinstance(record, dict)]


async def _fetch_notes(customer_id: str) -> list[Note]:
    async with NoteStoreClient() as client:
        return await client.fetch_notes(customer_id)


def _load_notes(customer_id: str | None, notes_file: Path | None) -> list[ClassifiedNote]:
    """Load notes from a JSON export or the note store, then classify them."""
    if notes_file is not None:
        notes = _read_notes_file(notes_file)
    elif customer_id:
        try:
            notes = asyncio.run(_fetch_notes(customer_id))
        except FetchError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
    else:
        console.print("[red]Error:[/red] give a customer id or --notes-file")
        sys.exit(1)
    return classify_notes(notes)


CUSTOMER_ARGUMENT = typer.Argument(None, help="Customer id to fetch notes for")
NOTES_FILE_OPTION = typer.Option(
    None,
    "--notes-file",
    "-f",
    help="Read notes from a JSON file instead of the note store",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")


@app.command()
def timeline(
    customer_id: Optional[str] = CUSTOMER_ARGUMENT,
    notes_file: Optional[Path] = NOTES_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the customer's journey timeline."""
    _configure_logging(verbose)
    notes = _load_notes(customer_id, notes_file)
    result = derive_timeline(notes)

    table = Table(title="Journey Timeline", show_header=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Stage", style="cyan")
    table.add_column("Status")

    for progress in result.stages:
        style = STATUS_STYLES[progress.status]
        table.add_row(
            str(progress.position + 1),
            progress.stage.value,
            f"[{style}]{progress.status.value}[/{style}]",
        )

    console.print(table)
    console.print(
        f"\n[dim]Notes:[/dim] {len(notes)}    "
        f"[dim]Current stage:[/dim] [bold]{result.current_stage.value}[/bold]"
    )


@app.command()
def reminders(
    customer_id: Optional[str] = CUSTOMER_ARGUMENT,
    notes_file: Optional[Path] = NOTES_FILE_OPTION,
    today: Optional[str] = typer.Option(None, "--today", help="Override today's date (YYYY-MM-DD)"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List reminders due today or tomorrow."""
    _configure_logging(verbose)
    notes = _load_notes(customer_id, notes_file)
    queue = scan(notes, set(), _parse_today(today))

    if not queue:
        console.print("[green]No reminders due today or tomorrow.[/green]")
        return

    table = Table(title="Due Reminders", show_header=True)
    table.add_column("When", style="bold")
    table.add_column("Date")
    table.add_column("Stage", style="cyan")
    table.add_column("Reminder")
    table.add_column("Key", style="dim")

    for notification in sorted(queue, key=lambda n: (n.date, n.key)):
        color = "red" if notification.urgency.value == "today" else "yellow"
        table.add_row(
            f"[{color}]{notification.urgency.value}[/{color}]",
            notification.display_date,
            notification.stage.value,
            notification.reminder_note or "",
            notification.key,
        )

    console.print(table)


@app.command("check-share")
def check_share(
    candidate_ids: List[str] = typer.Argument(..., help="Customer ids about to be shared"),
    customer_id: Optional[str] = typer.Option(None, "--customer", "-c", help="Customer id to fetch notes for"),
    notes_file: Optional[Path] = NOTES_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Check whether profiles were already shared with the customer."""
    _configure_logging(verbose)
    notes = _load_notes(customer_id, notes_file)
    already_shared = find_already_shared(notes, candidate_ids)

    if not already_shared:
        console.print("[green]None of these profiles were shared before.[/green]")
        return

    console.print(
        Panel.fit(
            "Already shared: " + ", ".join(already_shared),
            title="[yellow]Duplicate share[/yellow]",
            border_style="yellow",
        )
    )
    raise typer.Exit(code=2)


@app.command()
def validate(
    draft_path: Path = typer.Argument(
        ...,
        help="Path to a JSON note draft",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    today: Optional[str] = typer.Option(None, "--today", help="Override today's date (YYYY-MM-DD)"),
) -> None:
    """Validate a note draft against the submission rules."""
    try:
        with open(draft_path, "r", encoding="utf-8") as f:
            draft = NoteDraft.model_validate(json.load(f))
    except (json.JSONDecodeError, ValueError) as e:
        console.print(f"[red]Invalid draft:[/red] {e}")
        sys.exit(1)

    errors = validate_draft(draft, today=_parse_today(today))

    if not errors:
        label = status_label(draft.stage, draft.status)
        console.print(
            f"[green]Draft is valid[/green] ({draft.stage.value}"
            + (f": {label}" if label else "")
            + ")"
        )
        return

    console.print(f"[red]Draft rejected with {len(errors)} error(s):[/red]")
    for error in errors:
        console.print(f"  - [bold]{', '.join(error.fields)}[/bold]: {error.message} [dim]({error.code})[/dim]")
    sys.exit(1)


@app.command()
def info() -> None:
    """Show engine configuration and the stage catalog."""
    settings = get_settings()
    today = reference_today()

    table = Table(title="Follow-up Journey Engine", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("Note store", settings.store_base_url)
    table.add_row("Timezone", settings.reference_timezone)
    table.add_row("Today", format_display_date(today))
    table.add_row("Reminder window", f"{settings.reminder_max_days_ahead} days")
    table.add_row("Stages", " > ".join(stage.value for stage in STAGE_ORDER))

    console.print(table)


if __name__ == "__main__":
    app()
