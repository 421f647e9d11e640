"""Focus mode commands: plan a jornada of Pomodoro sessions and run it."""

import json

import typer
from rich.table import Table

from taskit_cli.models.focus.engine import TimerEngine
from taskit_cli.models.focus.exceptions import PersistenceError
from taskit_cli.models.focus.history import JornadaHistory
from taskit_cli.models.focus.ui import (
    TimerDisplay,
    render_plan_table,
    render_summary_panel,
    show_completion_message,
    show_stopped_message,
    task_label,
)
from taskit_cli.services.config_service import (
    PomodoroConfigStore,
    get_config_service,
    get_state_store,
)
from taskit_cli.services.work_item_service import LocalWorkItemProvider
from taskit_cli.utils.exit_codes import (
    ERROR_INVALID_ARGS,
    ERROR_INVALID_STATE,
    ERROR_NOT_FOUND,
)
from taskit_cli.utils.time_format import (
    format_minutes_as_hours_minutes,
    format_seconds_as_timer,
)
from taskit_cli.utils.ui.console import get_console
from taskit_cli.utils.ui.formatters import format_info, format_success, format_warning

from .decorators import AppError, command_wrapper

console = get_console()
app = typer.Typer(help="Focus mode with planned Pomodoro jornadas", no_args_is_help=True)
config_app = typer.Typer(help="Pomodoro configuration", no_args_is_help=True)
tasks_app = typer.Typer(help="Tasks assigned to the next jornada", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(tasks_app, name="tasks")


def _warn_not_persisted(error: PersistenceError) -> None:
    format_warning(f"Focus state could not be saved: {error}")


def get_history() -> JornadaHistory:
    return JornadaHistory(get_config_service().data_dir / "focus_history.db")


def get_engine(follow_external: bool = False) -> TimerEngine:
    """Build a TimerEngine resumed from the persisted state.

    Commands that open the live timer pass ``follow_external=True`` to see
    controls issued from other terminals.
    """
    return TimerEngine(
        state_store=get_state_store(),
        config_store=PomodoroConfigStore(get_config_service()),
        history=get_history(),
        follow_external=follow_external,
        on_persist_error=_warn_not_persisted,
    )


def get_work_item_provider() -> LocalWorkItemProvider:
    return LocalWorkItemProvider()


def _titles() -> dict[str, str]:
    try:
        return get_work_item_provider().titles()
    except ValueError as e:
        format_warning(str(e))
        return {}


def _run_timer(engine: TimerEngine) -> None:
    display = TimerDisplay(console)
    result = display.run(engine, _titles())

    if result == "completed":
        show_completion_message(engine, console)
    elif result == "stopped" and display.final_state is not None:
        show_stopped_message(display.final_state, console)
    elif result == "reset":
        console.print("[yellow]The jornada was stopped from another terminal.[/yellow]")
    elif result == "detached":
        format_info("Jornada left running. Use 'taskit focus run' to return.")
    else:
        console.print(
            "\n[yellow]Timer interrupted.[/yellow] Use 'taskit focus run' to continue."
        )


# --- Configuration ---


@config_app.command("show")
@command_wrapper
def config_show():
    """Show the Pomodoro configuration and the plan it produces."""
    engine = get_engine()
    console.print(render_summary_panel(engine.config, engine.plan_summary))


@config_app.command("set")
@command_wrapper
def config_set(
    total: int | None = typer.Option(None, "--total", help="Jornada length in minutes"),
    focus: int | None = typer.Option(None, "--focus", help="Focus session minutes"),
    short_break: int | None = typer.Option(None, "--short", help="Short break minutes"),
    long_break: int | None = typer.Option(None, "--long", help="Long break minutes"),
    interval: int | None = typer.Option(
        None, "--interval", help="Focus sessions before a long break"
    ),
):
    """Update one or more Pomodoro durations."""
    updates = {
        "total_duration_minutes": total,
        "focus_minutes": focus,
        "short_break_minutes": short_break,
        "long_break_minutes": long_break,
        "long_break_interval": interval,
    }
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        raise AppError(
            "Nothing to update. Pass at least one option.",
            exit_code=ERROR_INVALID_ARGS,
        )

    engine = get_engine()
    config = engine.update_configuration({**engine.config.model_dump(), **updates})
    format_success("Pomodoro configuration updated")
    console.print(render_summary_panel(config, engine.plan_summary))
    if engine.phase != "setup":
        console.print("[dim]The running jornada keeps its current plan.[/dim]")


@config_app.command("reset")
@command_wrapper
def config_reset():
    """Restore the default Pomodoro durations."""
    engine = get_engine()
    engine.update_configuration({})
    format_success("Pomodoro configuration reset to defaults")


# --- Tasks ---


@tasks_app.command("list")
@command_wrapper
def tasks_list():
    """List the tasks assigned to the next jornada."""
    engine = get_engine()
    titles = _titles()
    if not engine.task_ids:
        console.print("[dim]No tasks assigned. Focus sessions will run without a task.[/dim]")
        return
    for position, task_id in enumerate(engine.task_ids, start=1):
        console.print(f"{position}. {task_label(task_id, titles)}")


@tasks_app.command("available")
@command_wrapper
def tasks_available():
    """List tasks that can still be added."""
    engine = get_engine()
    items = get_work_item_provider().list_available(exclude=engine.task_ids)
    if not items:
        console.print("[dim]No available tasks.[/dim]")
        return
    table = Table(title="Available Tasks")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Status")
    for item in items:
        table.add_row(item.id, item.title, item.status.replace("_", " "))
    console.print(table)


@tasks_app.command("add")
@command_wrapper
def tasks_add(task_ids: list[str] = typer.Argument(..., help="Task IDs to add")):
    """Add tasks to the next jornada."""
    engine = get_engine()
    titles = _titles()
    for task_id in task_ids:
        if titles and task_id not in titles:
            format_warning(f"Task '{task_id}' is not in the local task list")
        engine.add_task_id(task_id)
    format_success(f"{len(engine.task_ids)} task(s) assigned")


@tasks_app.command("remove")
@command_wrapper
def tasks_remove(task_id: str = typer.Argument(..., help="Task ID to remove")):
    """Remove a task from the next jornada."""
    engine = get_engine()
    if task_id not in engine.task_ids:
        raise AppError(f"Task '{task_id}' is not assigned", exit_code=ERROR_NOT_FOUND)
    engine.remove_task_id(task_id)
    format_success(f"Removed task '{task_id}'")


@tasks_app.command("set")
@command_wrapper
def tasks_set(task_ids: list[str] = typer.Argument(..., help="Task IDs in order")):
    """Replace the assigned tasks."""
    engine = get_engine()
    engine.set_task_ids(task_ids)
    format_success(f"{len(engine.task_ids)} task(s) assigned")


@tasks_app.command("clear")
@command_wrapper
def tasks_clear():
    """Remove every assigned task."""
    engine = get_engine()
    engine.set_task_ids([])
    format_success("Task list cleared")


# --- Jornada ---


@app.command("plan")
@command_wrapper
def plan(
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
):
    """Preview the sessions the next jornada would run."""
    engine = get_engine()
    sessions = engine.preview_sessions
    if as_json:
        data = {
            "summary": engine.plan_summary.to_dict(),
            "sessions": [session.to_dict() for session in sessions],
        }
        print(json.dumps(data, indent=2))
        return

    console.print(render_summary_panel(engine.config, engine.plan_summary))
    if not sessions:
        format_warning("The jornada is shorter than one focus session")
        return
    console.print(render_plan_table(sessions, _titles()))


@app.command("start")
@command_wrapper
def start(
    detach: bool = typer.Option(
        False, "--detach", "-d", help="Start without opening the live timer"
    ),
):
    """Plan the jornada and start the timer."""
    engine = get_engine(follow_external=True)
    engine.start()

    summary = engine.plan_progress
    console.print("\n[bold green]🍅 Jornada started[/bold green]")
    console.print(
        f"Focus sessions: {summary.total_focus_sessions} · "
        f"Length: {format_minutes_as_hours_minutes(summary.remaining_minutes)}"
    )
    if detach:
        console.print("[dim]Use 'taskit focus run' to open the timer.[/dim]")
        return
    _run_timer(engine)


@app.command("run")
@command_wrapper
def run():
    """Open the live timer for the active jornada."""
    engine = get_engine(follow_external=True)
    if engine.phase != "active":
        raise AppError(
            "No active jornada. Use 'taskit focus start' first.",
            exit_code=ERROR_INVALID_STATE,
        )
    _run_timer(engine)


@app.command("pause")
@command_wrapper
def pause():
    """Pause the countdown."""
    engine = get_engine()
    engine.pause()
    format_success(f"Paused at {format_seconds_as_timer(engine.remaining_seconds)}")


@app.command("resume")
@command_wrapper
def resume():
    """Resume a paused countdown."""
    engine = get_engine()
    engine.resume()
    format_success(f"Resumed at {format_seconds_as_timer(engine.remaining_seconds)}")


@app.command("next")
@command_wrapper
def skip_forward():
    """Skip to the next session."""
    engine = get_engine()
    engine.skip_forward()
    if engine.phase == "completed":
        format_success("Jornada complete")
    else:
        format_success(f"Now on {engine.current_session.label}")


@app.command("back")
@command_wrapper
def skip_back():
    """Restart the previous session."""
    engine = get_engine()
    if engine.current_index == 0 and engine.phase == "active":
        format_info("Already at the first session")
        return
    engine.skip_back()
    format_success(f"Back to {engine.current_session.label}")


@app.command("stop")
@command_wrapper
def stop():
    """Stop the jornada and return to setup."""
    engine = get_engine()
    state = engine.state
    engine.stop()
    if state.phase == "active":
        show_stopped_message(state, console)
    else:
        format_success("Focus timer reset")


@app.command("status")
@command_wrapper
def status(
    as_json: bool = typer.Option(False, "--json", help="Print the raw engine state"),
):
    """Show the current jornada."""
    engine = get_engine()
    if as_json:
        print(json.dumps(engine.state.to_dict(), indent=2))
        return

    if engine.phase == "setup":
        console.print("[dim]No jornada running.[/dim]")
        console.print(render_summary_panel(engine.config, engine.plan_summary))
        return

    if engine.phase == "completed":
        console.print("[bold green]✓ Jornada complete[/bold green]")
    else:
        session = engine.current_session
        state_label = "[yellow]paused[/yellow]" if engine.is_paused else "[green]running[/green]"
        progress = engine.plan_progress
        console.print(
            f"{session.label} · {format_seconds_as_timer(engine.remaining_seconds)} · {state_label}"
        )
        console.print(
            f"Session {progress.current_focus_number} of {progress.total_focus_sessions}"
            f" · Jornada: {format_minutes_as_hours_minutes(progress.remaining_minutes)} left"
        )
    console.print(render_plan_table(engine.sessions, _titles(), engine.current_index))


@app.command("history")
@command_wrapper
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of jornadas to show"),
    as_json: bool = typer.Option(False, "--json", help="Print records as JSON"),
):
    """Show recent jornadas."""
    records = get_history().get_recent(limit=limit)
    if as_json:
        print(json.dumps([record.to_dict() for record in records], indent=2))
        return
    if not records:
        console.print("[dim]No jornadas recorded yet.[/dim]")
        return

    table = Table(title="Jornada History")
    table.add_column("Started")
    table.add_column("Status")
    table.add_column("Sessions", justify="right")
    table.add_column("Focus", justify="right")
    for record in records:
        status_style = "green" if record.status == "completed" else "yellow"
        table.add_row(
            record.started_at.replace("T", " ")[:16],
            f"[{status_style}]{record.status}[/{status_style}]",
            f"{record.sessions_completed}/{record.sessions_planned}",
            format_minutes_as_hours_minutes(record.focus_minutes),
        )
    console.print(table)


@app.command("stats")
@command_wrapper
def stats(
    since: str | None = typer.Option(
        None, "--since", help="Count jornadas started at or after this ISO date"
    ),
    until: str | None = typer.Option(
        None, "--until", help="Count jornadas started at or before this ISO date"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print stats as JSON"),
):
    """Show focus totals for this week and all time (or a date range)."""
    try:
        data = get_history().get_stats(since=since, until=until)
    except ValueError as e:
        raise AppError(f"Invalid date: {e}", exit_code=ERROR_INVALID_ARGS) from e
    if as_json:
        print(json.dumps(data, indent=2))
        return

    range_label = "All time" if since is None and until is None else "Range"
    table = Table(title="Focus Stats")
    table.add_column("")
    table.add_column("Jornadas", justify="right")
    table.add_column("Focus time", justify="right")
    table.add_row(
        "This week",
        str(data["week_jornadas"]),
        format_minutes_as_hours_minutes(data["week_focus_minutes"]),
    )
    table.add_row(
        range_label,
        str(data["total_jornadas"]),
        format_minutes_as_hours_minutes(data["total_focus_minutes"]),
    )
    console.print(table)
    average = round(data["average_focus_minutes"])
    console.print(f"Average per jornada: {format_minutes_as_hours_minutes(average)}")
