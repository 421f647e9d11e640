"""Main entry point for Taskit CLI."""

import typer

from taskit_cli import __version__
from taskit_cli.commands import focus
from taskit_cli.utils.ui.console import get_console

app = typer.Typer(
    name="taskit",
    help="Task manager with planned Pomodoro focus jornadas",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(focus.app, name="focus", help="Focus mode with Pomodoro jornadas")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Taskit CLI[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
