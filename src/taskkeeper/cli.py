"""Command-line interface for taskkeeper."""

import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import Config, ConfigModel, get_config, load_config
from .errors import StorageError, TaskKeeperError, ValidationError
from .reminder import Reminder, ReminderKind
from .storage import get_storage, reset_storage
from .store import TaskStore
from .task import Task, TaskStatus
from .utils.datetime import parse_date, today

console = Console()
logger = logging.getLogger(__name__)

STATUS_CHOICES = [status.name.lower() for status in TaskStatus]

KIND_CHOICES = {
    "day": ReminderKind.ONE_DAY_BEFORE,
    "week": ReminderKind.ONE_WEEK_BEFORE,
    "month": ReminderKind.ONE_MONTH_BEFORE,
    "custom": ReminderKind.CUSTOM_DATE,
}

STATUS_STYLE = {
    TaskStatus.OPEN: "white",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.POSTPONED: "yellow",
    TaskStatus.COMPLETED: "green",
    TaskStatus.DELAYED: "red",
}


def _configure_logging(verbose: bool, level_name: str) -> None:
    level = logging.DEBUG if verbose else getattr(logging, str(level_name).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("taskkeeper").setLevel(level)


def _fail(message: str, suggestions: Optional[List[str]] = None) -> None:
    console.print(f"[red]❌ {message}[/red]")
    for suggestion in suggestions or []:
        console.print(f"[dim]  • {suggestion}[/dim]")
    sys.exit(1)


@contextmanager
def store_session(save: bool = True) -> Iterator[TaskStore]:
    """Load the store, hand it to a command, and save it afterwards.

    Any TaskKeeperError aborts the command with exit status 1 and nothing
    is written.
    """
    storage = get_storage()
    try:
        store = storage.load()
        yield store
        if save:
            storage.save(store)
    except TaskKeeperError as e:
        logger.debug("Command failed", exc_info=True)
        _fail(e.message, e.suggestions)


def _parse_date_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_date(value, get_config().date_format)
    except ValueError:
        raise click.BadParameter(f"expected a date like {get_config().date_format}")


def _format_date(value) -> str:
    if value is None:
        return "-"
    return value.strftime(get_config().date_format)


def _task_table(tasks: List[Task], store: TaskStore, title: Optional[str] = None) -> Table:
    table = Table(title=title)
    table.add_column("Title", style="bold")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Deadline")
    table.add_column("Status")
    table.add_column("Reminders", justify="right")

    for task in tasks:
        style = STATUS_STYLE.get(task.status, "white")
        table.add_row(
            task.title,
            task.category,
            task.priority,
            _format_date(task.deadline),
            f"[{style}]{task.status.value}[/{style}]",
            str(len(store.reminders_for_task(task))),
        )
    return table


def _reminder_line(number: int, reminder: Reminder) -> str:
    return (
        f"[dim]{number}[/dim] {reminder.task.title} "
        f"[cyan]{_format_date(reminder.reminder_date)}[/cyan] "
        f"[dim]({reminder.kind.value})[/dim]"
    )


def _pick_reminder(store: TaskStore, number: int) -> Reminder:
    reminders = store.reminders
    if number < 1 or number > len(reminders):
        raise ValidationError(
            f"No reminder number {number}.",
            suggestions=["Run 'taskkeeper reminder list' to see reminder numbers"],
        )
    return reminders[number - 1]


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to config file")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Directory holding the task data")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config_path, data_dir, verbose):
    """taskkeeper - track tasks, categories, priorities, and reminders."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    Config.reset()
    reset_storage()
    if config_path:
        config = load_config(Path(config_path))
    elif data_dir:
        config = ConfigModel(data_dir=data_dir, backup_dir=os.path.join(data_dir, "backups"))
        Config.set(config)
    else:
        config = get_config()

    console.no_color = config.no_color
    _configure_logging(verbose, config.log_level)


# ---- tasks ----

@main.group()
def task():
    """Manage tasks."""


@task.command("add")
@click.argument("title")
@click.option("--category", "-c", help="Category name")
@click.option("--priority", "-p", default="Default", show_default=True, help="Priority name")
@click.option("--due", "-d", callback=_parse_date_option, help="Deadline (YYYY-MM-DD)")
@click.option("--description", "-D", default="", help="Longer description")
def task_add(title, category, priority, due, description):
    """Add a new task."""
    category = category or get_config().default_category
    if not category:
        _fail("A category is required.", ["Pass --category or set default_category in config.yaml"])

    with store_session() as store:
        new_task = store.add_task(Task(
            title=title,
            description=description,
            category=category,
            priority=priority,
            deadline=due,
        ))
    console.print(f"[green]✅ Added task: {new_task.title}[/green]")
    if new_task.status == TaskStatus.DELAYED:
        console.print("[yellow]⚠️  Deadline already passed; task marked Delayed[/yellow]")


@task.command("list")
@click.option("--status", "-s", type=click.Choice(STATUS_CHOICES), help="Filter by status")
@click.option("--category", "-c", help="Filter by category")
@click.option("--priority", "-p", help="Filter by priority")
def task_list(status, category, priority):
    """List tasks."""
    with store_session(save=False) as store:
        tasks = store.search_tasks(category=category, priority=priority)
        if status:
            tasks = [t for t in tasks if t.status == TaskStatus[status.upper()]]

        if not tasks:
            console.print("[yellow]No tasks found.[/yellow]")
            return
        console.print(_task_table(tasks, store, title=f"{len(tasks)} task(s)"))


@task.command("search")
@click.argument("query", required=False)
@click.option("--category", "-c", help="Exact category name")
@click.option("--priority", "-p", help="Exact priority name")
def task_search(query, category, priority):
    """Search tasks by title substring, category, and priority."""
    with store_session(save=False) as store:
        tasks = store.search_tasks(query, category, priority)
        if not tasks:
            console.print("[yellow]No tasks match the specified filters.[/yellow]")
            return
        console.print(_task_table(tasks, store, title=f"Found {len(tasks)} task(s)"))


@task.command("update")
@click.argument("title")
@click.option("--title", "new_title", help="New title")
@click.option("--description", "-D", help="New description")
@click.option("--category", "-c", help="New category")
@click.option("--priority", "-p", help="New priority")
@click.option("--due", "-d", callback=_parse_date_option, help="New deadline (YYYY-MM-DD)")
def task_update(title, new_title, description, category, priority, due):
    """Update fields of a task."""
    with store_session() as store:
        updated = store.update_task(
            store.get_task(title), new_title, description, category, priority, due
        )
    console.print(f"[green]✅ Updated task: {updated.title}[/green]")


@task.command("status")
@click.argument("title")
@click.argument("status", type=click.Choice(STATUS_CHOICES))
def task_status(title, status):
    """Change the status of a task."""
    new_status = TaskStatus[status.upper()]
    with store_session() as store:
        updated = store.update_task_status(store.get_task(title), new_status)
    console.print(f"[green]✅ {updated.title} is now {new_status.value}[/green]")


@task.command("remove")
@click.argument("title")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def task_remove(title, yes):
    """Remove a task and its reminders."""
    if get_config().confirm_deletion and not yes:
        click.confirm(f"Remove task '{title}'?", abort=True)
    with store_session() as store:
        doomed = store.get_task(title)
        store.remove_task(doomed)
    console.print(f"[green]✅ Removed task: {doomed.title}[/green]")


# ---- categories ----

@main.group()
def category():
    """Manage categories."""


@category.command("add")
@click.argument("name")
def category_add(name):
    """Add a category."""
    with store_session() as store:
        created = store.add_category(name)
    console.print(f"[green]✅ Added category: {created.name}[/green]")


@category.command("list")
def category_list():
    """List categories with their task counts."""
    with store_session(save=False) as store:
        if not store.categories:
            console.print("[yellow]No categories found.[/yellow]")
            return
        console.print("[bold]Categories:[/bold]")
        for item in store.categories:
            count = len(store.search_tasks(category=item.name))
            console.print(f"  {item.name} ({count} tasks)")


@category.command("rename")
@click.argument("name")
@click.argument("new_name")
def category_rename(name, new_name):
    """Rename a category; its tasks follow."""
    with store_session() as store:
        store.rename_category(store.get_category(name), new_name)
    console.print(f"[green]✅ Renamed category {name} to {new_name}[/green]")


@category.command("remove")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def category_remove(name, yes):
    """Remove a category and every task in it."""
    if get_config().confirm_deletion and not yes:
        click.confirm(f"Remove category '{name}' and all of its tasks?", abort=True)
    with store_session() as store:
        removed = store.remove_category(store.get_category(name))
    console.print(f"[green]✅ Removed category {name} ({len(removed)} tasks deleted)[/green]")


# ---- priorities ----

@main.group()
def priority():
    """Manage priorities."""


@priority.command("add")
@click.argument("name")
def priority_add(name):
    """Add a priority."""
    with store_session() as store:
        created = store.add_priority(name)
    console.print(f"[green]✅ Added priority: {created.name}[/green]")


@priority.command("list")
def priority_list():
    """List priorities with their task counts."""
    with store_session(save=False) as store:
        console.print("[bold]Priorities:[/bold]")
        for item in store.priorities:
            count = len(store.search_tasks(priority=item.name))
            marker = " [dim](protected)[/dim]" if item.is_default else ""
            console.print(f"  {item.name} ({count} tasks){marker}")


@priority.command("rename")
@click.argument("name")
@click.argument("new_name")
def priority_rename(name, new_name):
    """Rename a priority; its tasks follow."""
    with store_session() as store:
        store.rename_priority(store.get_priority(name), new_name)
    console.print(f"[green]✅ Renamed priority {name} to {new_name}[/green]")


@priority.command("remove")
@click.argument("name")
def priority_remove(name):
    """Remove a priority; its tasks move to Default."""
    with store_session() as store:
        moved = store.remove_priority(store.get_priority(name))
    console.print(f"[green]✅ Removed priority {name} ({len(moved)} tasks moved to Default)[/green]")


# ---- reminders ----

@main.group()
def reminder():
    """Manage reminders."""


@reminder.command("add")
@click.argument("title")
@click.option("--kind", "-k", type=click.Choice(list(KIND_CHOICES)), default="day",
              show_default=True, help="How long before the deadline")
@click.option("--date", "custom_date", callback=_parse_date_option,
              help="Reminder date for --kind custom")
def reminder_add(title, kind, custom_date):
    """Add a reminder to a task."""
    with store_session() as store:
        created = store.add_reminder(title, KIND_CHOICES[kind], custom_date)
    console.print(
        f"[green]✅ Reminder for {created.task.title} on "
        f"{_format_date(created.reminder_date)}[/green]"
    )


@reminder.command("list")
@click.option("--task", "task_title", help="Only reminders of this task")
def reminder_list(task_title):
    """List reminders with their numbers."""
    with store_session(save=False) as store:
        selected = store.get_task(task_title) if task_title else None
        lines = [
            _reminder_line(number, item)
            for number, item in enumerate(store.reminders, start=1)
            if selected is None or item.task is selected
        ]
        if not lines:
            console.print("[yellow]No reminders found.[/yellow]")
            return
        for line in lines:
            console.print(line)


@reminder.command("update")
@click.argument("number", type=int)
@click.option("--kind", "-k", type=click.Choice(list(KIND_CHOICES)), required=True,
              help="How long before the deadline")
@click.option("--date", "custom_date", callback=_parse_date_option,
              help="Reminder date for --kind custom")
def reminder_update(number, kind, custom_date):
    """Change a reminder (see 'reminder list' for numbers)."""
    with store_session() as store:
        updated = store.update_reminder(_pick_reminder(store, number), KIND_CHOICES[kind], custom_date)
    console.print(
        f"[green]✅ Reminder for {updated.task.title} now on "
        f"{_format_date(updated.reminder_date)}[/green]"
    )


@reminder.command("remove")
@click.argument("number", type=int)
def reminder_remove(number):
    """Remove a reminder (see 'reminder list' for numbers)."""
    with store_session() as store:
        doomed = _pick_reminder(store, number)
        store.remove_reminder(doomed)
    console.print(f"[green]✅ Removed reminder for {doomed.task.title}[/green]")


@reminder.command("due")
@click.option("--date", "day", callback=_parse_date_option, help="Day to check (default: today)")
def reminder_due(day):
    """Show reminders that fire on a given day."""
    with store_session(save=False) as store:
        day = day or today()
        due = store.due_reminders_on(day)
        if not due:
            console.print(f"[dim]No reminders for {_format_date(day)}.[/dim]")
            return
        for item in due:
            console.print(f"🔔 [bold]{item.task.title}[/bold] due {_format_date(item.task.deadline)}")


# ---- overview ----

@main.command()
def dashboard():
    """Show an overview of tasks and today's reminders."""
    config = get_config()
    with store_session(save=False) as store:
        stats = store.statistics(upcoming_days=config.upcoming_days)
        console.print(Panel.fit(
            f"Total: {stats['total']} | Completed: {stats['completed']} | "
            f"Delayed: {stats['delayed']} | Due in {config.upcoming_days} days: {stats['upcoming']}",
            title="📋 Task Dashboard",
        ))

        delayed = [t for t in store.tasks if t.status == TaskStatus.DELAYED]
        if delayed:
            console.print(_task_table(delayed, store, title="🔥 Delayed Tasks"))

        due = store.due_reminders_on(store.today())
        if due:
            console.print("\n[bold cyan]🔔 Reminders for today[/bold cyan]")
            for item in due:
                console.print(f"  {item.task.title} (due {_format_date(item.task.deadline)})")


@main.command()
def backup():
    """Copy the data files to a timestamped backup directory."""
    try:
        backup_dir = get_storage().backup()
    except StorageError as e:
        _fail(e.message, e.suggestions)
        return
    if backup_dir is None:
        console.print("[yellow]Nothing to back up yet.[/yellow]")
    else:
        console.print(f"[green]✅ Backup written to {backup_dir}[/green]")


@main.command()
def info():
    """Show application information."""
    from . import __version__

    config = get_config()
    console.print(f"taskkeeper version {__version__}")
    console.print(f"Data directory: {config.data_dir}")
    console.print(f"Configuration: {config.get_config_path()}")


if __name__ == "__main__":
    main()
