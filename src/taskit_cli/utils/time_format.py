"""Duration formatting helpers for timer output."""


def format_seconds_as_timer(seconds: int) -> str:
    """Format seconds as a ``MM:SS`` countdown.

    Minutes are not wrapped into hours: 3600 seconds is ``60:00``.
    """
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


def format_minutes_as_hours_minutes(minutes: int) -> str:
    """Format minutes as ``3h 20m``, or ``25m`` under one hour."""
    minutes = max(0, int(minutes))
    hours, remaining = divmod(minutes, 60)
    if hours == 0:
        return f"{remaining}m"
    return f"{hours}h {remaining}m"
