"""Command-line interface for unutma."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .capture import TaskCapture
from .config import ConfigError, get_config, load_config
from .keywords import format_long_date
from .notifications import FileScheduler, NotificationError
from .parser import ParseContext, TemporalPhraseParser
from .storage import Storage, TaskNotFoundError
from .task import Task
from .utils.datetime import from_date_key, now_local, to_date_key

console = Console()


def configure_logging(level: str = "WARNING") -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def get_capture() -> TaskCapture:
    """Build the capture service from the loaded configuration."""
    config = get_config()
    scheduler = FileScheduler(config.get_notifications_path())
    return TaskCapture(Storage(config), scheduler)


def _reference_date(value: Optional[str]):
    try:
        return from_date_key(value) if value else now_local().date()
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got '{value}'", param_hint="--date")


def _now(value: Optional[str], param_hint: str = "--now") -> datetime:
    try:
        return datetime.fromisoformat(value) if value else now_local()
    except ValueError:
        raise click.BadParameter(f"Expected an ISO timestamp, got '{value}'", param_hint=param_hint)


def format_task(task: Task) -> str:
    icon = "✅" if task.completed else "⬜"
    line = f"{icon} {escape(task.text)} [dim]{task.id[:8]}[/dim]"
    if task.reminder_date:
        line += f" [cyan]⏰ {task.reminder_date.strftime('%H:%M')}[/cyan]"
    return line


@click.group()
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """unutma - capture tasks in plain Turkish, get reminded on time."""
    ctx.ensure_object(dict)
    try:
        cfg = load_config(Path(config)) if config else get_config()
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)
    configure_logging("DEBUG" if verbose else cfg.log_level)


@main.command()
@click.argument("text")
@click.option("--date", "date_str", help="Day on screen (YYYY-MM-DD, default today)")
@click.option("--now", "now_str", help="Wall-clock time (ISO, default now)")
def parse(text, date_str, now_str):
    """Show what would be inferred from TEXT without saving anything."""
    reference = _reference_date(date_str)
    now = _now(now_str)
    parser = TemporalPhraseParser.from_config(get_config())
    result = parser.parse(ParseContext(raw_text=text, reference_date=reference, now=now))

    table = Table(show_header=False, box=None)
    table.add_row("Task", escape(result.task_text))
    table.add_row("Date", f"{result.date_key} ({format_long_date(result.target_date)})")
    table.add_row("Reminder", result.reminder_instant.isoformat(sep=" ") if result.reminder_instant else "-")
    console.print(table)

    for suggestion in parser.suggest_corrections(text):
        console.print(f"[yellow]💡 {suggestion}[/yellow]")


@main.command()
@click.argument("text")
@click.option("--date", "date_str", help="Day on screen (YYYY-MM-DD, default today)")
@click.option("--now", "now_str", help="Wall-clock time (ISO, default now)")
def add(text, date_str, now_str):
    """Add a task, inferring its day and reminder from TEXT."""
    reference = _reference_date(date_str)
    try:
        outcome = get_capture().add_task(text, reference, now=_now(now_str))
    except NotificationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if outcome is None:
        console.print("[yellow]Nothing to add.[/yellow]")
        return

    console.print(f"[green]✓[/green] {format_task(outcome.task)}")
    if outcome.confirmation:
        console.print(Panel(escape(outcome.confirmation.message), title=outcome.confirmation.title))


@main.command(name="list")
@click.option("--date", "date_str", help="Day to show (YYYY-MM-DD, default today)")
def list_tasks(date_str):
    """List the tasks filed under a day."""
    day = _reference_date(date_str)
    tasks = get_capture().tasks_for(day)
    console.print(f"[bold]{format_long_date(day)}[/bold]")
    if not tasks:
        console.print("[dim]No tasks.[/dim]")
    for task in tasks:
        console.print(f"  {format_task(task)}")


def _resolve(capture: TaskCapture, prefix: str) -> Task:
    matches = [t for t in capture.storage.all_tasks() if t.id.startswith(prefix)]
    if len(matches) != 1:
        raise click.ClickException(
            f"No task matches '{prefix}'" if not matches else f"'{prefix}' matches {len(matches)} tasks"
        )
    return matches[0]


@main.command()
@click.argument("task_id")
def done(task_id):
    """Toggle a task between pending and completed."""
    capture = get_capture()
    task = capture.storage.toggle_task(_resolve(capture, task_id).id)
    console.print(format_task(task))


@main.command()
@click.argument("task_id")
def delete(task_id):
    """Delete a task and cancel its reminder."""
    capture = get_capture()
    try:
        task = capture.delete_task(_resolve(capture, task_id).id)
    except TaskNotFoundError:
        raise click.ClickException(f"No task matches '{task_id}'")
    console.print(f"[red]🗑[/red] {escape(task.text)}")


@main.command(name="move-tomorrow")
@click.argument("task_id")
def move_tomorrow(task_id):
    """Move a task (and its reminder) to the following day."""
    capture = get_capture()
    task = capture.move_to_tomorrow(_resolve(capture, task_id).id)
    console.print(f"{format_task(task)} → {format_long_date(task.day)}")


@main.command()
@click.argument("task_id")
@click.argument("when")
def remind(task_id, when):
    """Set a task's reminder to WHEN (ISO timestamp)."""
    capture = get_capture()
    task = _resolve(capture, task_id)
    reminder_id = capture.reschedule_reminder(task.id, _now(when, param_hint="WHEN"))
    if reminder_id is None:
        raise click.ClickException("Cannot schedule a reminder in the past")
    console.print(f"[cyan]⏰[/cyan] {escape(task.text)} @ {when}")


@main.command()
@click.option("--move", is_flag=True, help="Move every overdue task to today")
def overdue(move):
    """Show pending tasks left on past days."""
    capture = get_capture()
    today = now_local().date()
    tasks = capture.storage.overdue_tasks(today)
    if not tasks:
        console.print("[green]Nothing overdue.[/green]")
        return

    table = Table(title="Overdue")
    table.add_column("Day")
    table.add_column("Task")
    for task in tasks:
        table.add_row(task.date, escape(task.text))
    console.print(table)

    if move:
        moved = capture.move_overdue_to_today(today)
        console.print(f"[green]Moved {len(moved)} tasks to {to_date_key(today)}[/green]")


if __name__ == "__main__":
    main()
