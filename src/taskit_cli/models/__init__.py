"""Data models for Taskit CLI."""

from .config_models import AppConfig, PomodoroConfig
from .work_item import WorkItem

__all__ = ["AppConfig", "PomodoroConfig", "WorkItem"]
