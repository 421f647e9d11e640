"""Read-only access to the tasks a jornada can focus on.

Task storage belongs to the task manager; the focus commands only need ids,
titles and statuses. The local provider reads them from ``tasks.json`` in the
data directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from taskit_cli.models.work_item import WorkItem

_WORK_ITEMS = TypeAdapter(list[WorkItem])


class WorkItemProvider(Protocol):
    """Source of work items for focus planning."""

    def list_items(self) -> list[WorkItem]: ...

    def get_item(self, item_id: str) -> WorkItem | None: ...


class LocalWorkItemProvider:
    """Work items from a JSON list on disk."""

    def __init__(self, path: Path | None = None):
        if path is None:
            from taskit_cli.services.config_service import get_config_service

            path = get_config_service().data_dir / "tasks.json"
        self.path = path

    def list_items(self) -> list[WorkItem]:
        """Load all items. A missing file means there are no tasks."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                data = data.get("tasks", [])
            return _WORK_ITEMS.validate_python(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ValueError(f"Invalid task file {self.path}: {e}") from e

    def get_item(self, item_id: str) -> WorkItem | None:
        for item in self.list_items():
            if item.id == item_id:
                return item
        return None

    def list_available(self, exclude: list[str] | None = None) -> list[WorkItem]:
        """Items that are not completed and not already in ``exclude``."""
        excluded = set(exclude or [])
        return [
            item
            for item in self.list_items()
            if item.is_available and item.id not in excluded
        ]

    def titles(self) -> dict[str, str]:
        """Map of item id to title."""
        return {item.id: item.title for item in self.list_items()}
