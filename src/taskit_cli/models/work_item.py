"""Work item models consumed by the focus engine."""

from typing import Literal

from pydantic import BaseModel, Field

WorkItemStatus = Literal["pending", "in_progress", "completed"]


class WorkItem(BaseModel):
    """A task as seen by focus planning.

    Attributes:
        id: Unique identifier of the task
        title: Display title
        status: Task status, used to offer tasks that can still be worked on
    """

    id: str = Field(min_length=1)
    title: str
    status: WorkItemStatus = "pending"

    @property
    def is_available(self) -> bool:
        return self.status != "completed"
