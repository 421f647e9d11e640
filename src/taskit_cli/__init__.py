"""Taskit CLI - task manager with a planned Pomodoro focus timer."""

__version__ = "0.3.0"
