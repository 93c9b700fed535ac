"""Goal data model for ProTIvity."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from protivity.models.base import Entity, to_local_naive


class Goal(Entity):
    """A goal groups tasks by weak reference.

    A goal does not own its tasks: ids in ``task_ids`` may outlive the task
    they point at, and readers must skip ids that no longer resolve.
    """

    title: str = Field(..., description="Goal title")
    description: str = Field("", description="Goal description")
    deadline: Optional[datetime] = Field(None, description="Goal deadline (local time)")
    is_completed: bool = Field(False, description="Whether the goal is completed")
    task_ids: List[str] = Field(default_factory=list, alias="tasks", description="Ordered task id references")

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title must not be empty")
        return v

    @field_validator("deadline")
    @classmethod
    def _normalize_deadline(cls, v):
        return to_local_naive(v)
