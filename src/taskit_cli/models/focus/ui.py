"""Rich rendering for focus plans and the live jornada timer."""

import time
from collections.abc import Callable, Mapping, Sequence

from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from taskit_cli.models.config_models import PomodoroConfig
from taskit_cli.utils.time_format import (
    format_minutes_as_hours_minutes,
    format_seconds_as_timer,
)

from .engine import TimerEngine
from .keyboard import action_for_key
from .planner import Session
from .state import EngineState
from .summary import PlanSummary

KIND_STYLES = {
    "focus": ("🍅", "cyan"),
    "short_break": ("☕", "yellow"),
    "long_break": ("🌴", "green"),
}


def task_label(task_id: str | None, titles: Mapping[str, str]) -> str:
    if task_id is None:
        return "-"
    title = titles.get(task_id)
    if title:
        return f"{title[:40]} (#{task_id[:8]})"
    return f"#{task_id[:8]}"


def render_plan_table(
    sessions: Sequence[Session],
    titles: Mapping[str, str] | None = None,
    current_index: int | None = None,
) -> Table:
    """Table of sessions with the current one highlighted."""
    titles = titles or {}
    table = Table(title="Session Plan", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Session")
    table.add_column("Duration", justify="right")
    table.add_column("Task")

    for session in sessions:
        emoji, color = KIND_STYLES[session.kind]
        style = None
        if current_index is not None:
            if session.index < current_index:
                style = "dim"
            elif session.index == current_index:
                style = f"bold {color}"
        table.add_row(
            str(session.index + 1),
            f"{emoji} {session.label}",
            f"{session.duration_minutes} min",
            task_label(session.task_id, titles),
            style=style,
        )
    return table


def render_summary_panel(config: PomodoroConfig, summary: PlanSummary) -> Panel:
    """Overview of the configuration and what it plans."""
    body = Text()
    body.append("Jornada: ", style="dim")
    body.append(format_minutes_as_hours_minutes(config.total_duration_minutes) + "\n")
    body.append("Focus: ", style="dim")
    body.append(f"{config.focus_minutes} min\n")
    body.append("Short / Long break: ", style="dim")
    body.append(f"{config.short_break_minutes}m / {config.long_break_minutes}m")
    body.append(f" (long every {config.long_break_interval})\n", style="dim")
    body.append("Sessions: ", style="dim")
    body.append(
        f"{summary.session_count} ({summary.focus_count} focus, "
        f"{summary.short_break_count} short, {summary.long_break_count} long)\n"
    )
    body.append("Total focus: ", style="dim")
    body.append(format_minutes_as_hours_minutes(summary.total_focus_minutes))
    return Panel(body, title="Pomodoro", border_style="cyan", padding=(0, 2))


class TimerDisplay:
    """Full-screen countdown that drives the engine's tick scheduler."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.final_state: EngineState | None = None

    def create_layout(self, engine: TimerEngine, titles: Mapping[str, str]) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        session = engine.current_session
        if engine.phase == "completed":
            header = Text("✓  JORNADA COMPLETE", style="bold green", justify="center")
        elif engine.is_paused:
            header = Text("⏸  PAUSED", style="bold yellow", justify="center")
        else:
            emoji, color = KIND_STYLES[session.kind] if session else ("🍅", "cyan")
            label = session.label if session else "Focus"
            header = Text(f"{emoji}  {label}", style=f"bold {color}", justify="center")
        layout["header"].update(Align.center(header, vertical="middle"))

        layout["body"].update(
            Align.center(self._create_body(engine, titles), vertical="middle")
        )

        if engine.is_paused:
            hints = "r resume  •  n next  •  b back  •  s stop  •  q quit"
        else:
            hints = "p pause  •  n next  •  b back  •  s stop  •  q quit"
        layout["footer"].update(
            Align.center(Text(hints, style="dim", justify="center"), vertical="middle")
        )
        return layout

    def _create_body(self, engine: TimerEngine, titles: Mapping[str, str]) -> Group:
        components = []
        session = engine.current_session
        remaining = engine.remaining_seconds

        if session and session.task_id:
            components.append(
                Text(task_label(session.task_id, titles), style="bold white", justify="center")
            )
            components.append(Text(""))

        if engine.is_paused:
            timer_color = "yellow"
        elif remaining < 60:
            timer_color = "red"
        else:
            timer_color = "cyan"
        components.append(
            Text(format_seconds_as_timer(remaining), style=f"bold {timer_color}", justify="center")
        )
        components.append(Text(""))

        if session:
            total = session.duration_seconds
            pct = min(100, int((total - remaining) / total * 100)) if total else 0
            filled = int(40 * pct / 100)
            components.append(
                Text("▓" * filled + "░" * (40 - filled) + f"  {pct}%", style="dim", justify="center")
            )

        progress = engine.plan_progress
        components.append(
            Text(
                f"Session {progress.current_focus_number} of {progress.total_focus_sessions}"
                f" · Jornada: {format_minutes_as_hours_minutes(progress.remaining_minutes)} left",
                style="dim",
                justify="center",
            )
        )
        return Group(*components)

    def run(
        self,
        engine: TimerEngine,
        titles: Mapping[str, str] | None = None,
        get_key: Callable[[], str | None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> str:
        """
        Run the live timer until the jornada ends or the user leaves.

        Returns 'completed', 'stopped', 'detached' (quit with the jornada still
        running), 'reset' (stopped from another terminal) or 'interrupted'.
        """
        titles = titles or {}
        keyboard = None
        if get_key is None:
            from .keyboard import KeyboardHandler

            keyboard = KeyboardHandler()
            get_key = keyboard.get_key

        try:
            with Live(
                self.create_layout(engine, titles),
                console=self.console,
                refresh_per_second=4,
                screen=True,
            ) as live:
                while True:
                    engine.sync_external()
                    if engine.phase == "setup":
                        return "reset"
                    if engine.phase == "completed":
                        return "completed"

                    action = action_for_key(get_key(), engine.is_paused)
                    if action == "quit":
                        return "detached"
                    if action == "stop":
                        self.final_state = engine.state
                        engine.stop()
                        return "stopped"
                    if action == "pause":
                        engine.pause()
                    elif action == "resume":
                        engine.resume()
                    elif action == "next":
                        engine.skip_forward()
                    elif action == "back":
                        engine.skip_back()

                    if engine.phase == "active":
                        engine.scheduler.run_pending()

                    live.update(self.create_layout(engine, titles))
                    if engine.phase == "completed":
                        sleep(2)
                        return "completed"

                    pending = engine.scheduler.seconds_until_next()
                    sleep(0.25 if pending is None else min(0.25, pending))
        except KeyboardInterrupt:
            return "interrupted"
        finally:
            if keyboard is not None:
                keyboard.stop()


def show_completion_message(engine: TimerEngine, console: Console | None = None):
    """Show a summary once every session has run."""
    console = console or Console()
    focus_minutes = sum(s.duration_minutes for s in engine.sessions if s.is_focus)
    focus_count = sum(1 for s in engine.sessions if s.is_focus)
    console.print(
        Panel(
            f"""[bold green]🎉 Jornada Complete![/bold green]

Focus sessions: {focus_count}
Focus time: {format_minutes_as_hours_minutes(focus_minutes)}

Run 'taskit focus stop' to plan a new jornada.""",
            border_style="green",
            padding=(1, 2),
        )
    )


def show_stopped_message(state: EngineState, console: Console | None = None):
    """Show a message when a jornada is stopped early."""
    console = console or Console()
    sessions_planned = sum(1 for s in state.sessions if s.is_focus)
    sessions_done = sum(1 for s in state.sessions[: state.current_index] if s.is_focus)
    console.print(
        Panel(
            f"""[yellow]Jornada Stopped[/yellow]

Focus sessions finished: {sessions_done} of {sessions_planned}""",
            border_style="yellow",
            padding=(1, 2),
        )
    )
