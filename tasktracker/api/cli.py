from tasktracker.config import ConfigError, Settings
from tasktracker.logging_setup import setup_logging
from tasktracker.domain.errors import DomainError, ErrorKind
from tasktracker.domain.task import Task, TaskId, TaskFilter, as_utc
from tasktracker.domain.enums import TaskStatus
from tasktracker.domain.transitions import parse_status
from tasktracker.services.task_service import TaskService
from tasktracker.adapters.factory import build_repository
from tasktracker.api.colors import TaskColor
from tasktracker.api.http import create_app
from typer import Argument, BadParameter, Exit, Option, Typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from datetime import datetime
from typing import Optional
import uvicorn


### COMMENTS
# ==========================================================
# CLI (Typer + Rich): `serve` runs the HTTP API, the other commands
# work on the configured backend directly through TaskService.
# ==========================================================
# - Zero business logic: everything goes through TaskService.
# - Dependencies (settings, logging, repository, service) are wired once in
#   the callback, before any command runs.
# - DomainError -> red panel + exit code 1.
# - With REPOSITORY_TYPE=memory every invocation starts empty; use sqlite or
#   postgres for the task commands to be useful between runs.


app = Typer(help="Task tracking service")
console = Console()

settings: Settings | None = None
service: TaskService | None = None  # set in the callback


@app.callback()
def main() -> None:
    """Load settings from the environment and wire the service."""
    global settings, service
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        console.print(Panel.fit(f"❌ {e}", title="Configuration error", border_style="red"))
        raise Exit(code=2)
    setup_logging(settings.log_level, settings.log_format)
    service = TaskService(build_repository(settings))


def short_id(task_id: str, n: int = 8) -> str:
    """Shortened UUID for display (first 8 characters)."""
    return str(task_id)[:n]


def color_status(status) -> str:
    """Status wrapped in Rich color markup."""
    match status:
        case TaskStatus.PENDING:
            return f"{TaskColor.YELLOW}pending{TaskColor.RESET}"
        case TaskStatus.IN_PROGRESS:
            return f"{TaskColor.BLUE}in_progress{TaskColor.RESET}"
        case TaskStatus.COMPLETED:
            return f"{TaskColor.GREEN}completed{TaskColor.RESET}"
        case _:
            return f"{TaskColor.RED}{status}{TaskColor.RESET}"


def parse_when(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 -> aware UTC datetime; naive input is read as UTC."""
    if value is None:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise BadParameter(f"not an ISO-8601 date: {value!r}")
    return as_utc(dt)


def fail(e: DomainError) -> None:
    """Prints a domain error and stops with exit code 1."""
    if e.kind == ErrorKind.NOT_FOUND:
        console.print(Panel.fit(
            f"❌ {e}\n[dim]Use 'tasktracker list' to find a valid ID[/]",
            title="Not found",
            border_style="red",
        ))
    elif e.kind in (ErrorKind.INVALID_STATUS, ErrorKind.VALIDATION):
        console.print(Panel.fit(f"❌ {e}", title="Rejected", border_style="red"))
    else:
        console.print(Panel.fit(f"❌ {e}", title="Storage error", border_style="red"))
    raise Exit(code=1)


def render_list(items: list[Task]) -> None:
    """Rich table with ID, Title, Status, Created and Due columns."""

    table = Table(show_lines=True, header_style="bold")
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Title")
    table.add_column("Status", no_wrap=True)
    table.add_column("Created At", no_wrap=True, style="dim")
    table.add_column("Due", no_wrap=True)

    for t in items:
        table.add_row(
            short_id(t.task_id),
            t.title,
            color_status(t.status),
            t.created_at.strftime("%Y-%m-%d %H:%M"),
            t.due_date.strftime("%Y-%m-%d %H:%M") if t.due_date else "-",
        )

    console.print(table)
    console.print(f"[dim]Total: {len(items)}[/dim]")


@app.command("serve")
def serve(
    host: Optional[str] = Option(None, "--host", help="Defaults to SERVER_HOST"),
    port: Optional[int] = Option(None, "--port", help="Defaults to SERVER_PORT"),
) -> None:
    """Run the HTTP API with uvicorn."""
    api = create_app(service, settings)
    uvicorn.run(api, host=host or settings.host, port=port or settings.port, log_config=None)


@app.command("add")
def add(
    title: str,
    desc: str = Option("", "--desc", "-d"),
    due: Optional[str] = Option(None, "--due", help="ISO-8601 due date"),
) -> None:
    """Create a new task (status pending)."""
    try:
        task = service.create_task(title, description=desc, due_date=parse_when(due))
    except DomainError as e:
        fail(e)
    console.print(Panel.fit(
        f"✅ Task created\n"
        f"[cyan]ID:[/cyan] {task.task_id}\n"
        f"[dim]Title:[/dim] {task.title}"
        + (f"\n[dim]Description:[/dim] {task.description}" if task.description else ""),
        title="Success",
        border_style="green",
    ))


@app.command("list")
def list_cmd(
    status: Optional[str] = Option(None, "--status", "-s"),
    due_before: Optional[str] = Option(None, "--due-before"),
    due_after: Optional[str] = Option(None, "--due-after"),
) -> None:
    """List tasks, newest first."""
    try:
        filters = TaskFilter(
            status=parse_status(status) if status else None,
            due_before=parse_when(due_before),
            due_after=parse_when(due_after),
        )
        items = service.list_tasks(filters)
    except DomainError as e:
        fail(e)
    render_list(items)


@app.command("show")
def show(task_id: str) -> None:
    """Show every field of a single task."""
    try:
        task = service.get_task(TaskId(task_id))
    except DomainError as e:
        fail(e)

    lines = [
        f"ID: {task.task_id}",
        f"Title: {task.title}",
        f"Description: {task.description or '[dim]none[/]'}",
        f"Status: {color_status(task.status)}",
        f"Created: {task.created_at.isoformat()}",
        f"Updated: {task.updated_at.isoformat()}",
        f"Due: {task.due_date.isoformat() if task.due_date else '-'}",
    ]
    console.print(Panel.fit("\n".join(lines), title="Task", border_style="cyan"))


@app.command("status")
def change_status(task_id: str, new_status: str = Argument(..., metavar="STATUS")) -> None:
    """Move a task to pending, in_progress or completed."""
    try:
        task = service.change_status(TaskId(task_id), new_status)
    except DomainError as e:
        fail(e)
    console.print(Panel.fit(
        f"✅ {short_id(task.task_id)} {task.title}\nStatus: {color_status(task.status)}",
        title="Updated",
        border_style="green",
    ))


@app.command("rm")
def rm(task_id: str) -> None:
    """Delete a task."""
    try:
        service.delete_task(TaskId(task_id))
    except DomainError as e:
        fail(e)
    console.print(Panel.fit(
        f"🟡 Task deleted\nID: {short_id(task_id)}",
        title="Deleted",
        border_style="yellow",
    ))


if __name__ == "__main__":
    app()
