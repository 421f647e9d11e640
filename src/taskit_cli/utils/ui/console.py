"""Console utilities for Taskit CLI."""

from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=2)
def get_console(highlight: bool = True) -> Console:
    """Get the shared Rich Console, so tests can patch a single instance."""
    return Console(highlight=highlight)
