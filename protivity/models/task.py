"""Task data model for ProTIvity."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from protivity.models.base import Entity, to_local_naive


class Priority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurrenceInterval(str, Enum):
    """Cadence at which a completed recurring task spawns its next occurrence."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Task(Entity):
    """Canonical Task model."""

    title: str = Field(..., description="Task title")
    is_completed: bool = Field(False, description="Whether the task is completed")
    category: str = Field(..., description="Free-text category label")
    priority: Priority = Field(Priority.MEDIUM, description="Task priority")
    due_date: Optional[datetime] = Field(None, description="Due date (local time)")
    notes: str = Field("", description="Task notes")
    is_recurring: bool = Field(False, description="Whether completion spawns a successor")
    recurrence_interval: Optional[RecurrenceInterval] = Field(
        None, description="Recurrence cadence (required when is_recurring)"
    )
    is_archived: bool = Field(False, description="Whether the task has been moved to the archive")
    last_completed_date: Optional[datetime] = Field(None, description="When the task was last completed")
    goal_id: Optional[str] = Field(None, description="Owning goal id (weak reference)")

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title must not be empty")
        return v

    @field_validator("priority", "recurrence_interval", mode="before")
    @classmethod
    def _normalize_enum_case(cls, v):
        # Older data stored capitalized raw values ("Medium", "Weekly")
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("due_date", "last_completed_date")
    @classmethod
    def _normalize_dates(cls, v):
        return to_local_naive(v)

    @model_validator(mode="after")
    def _validate_recurrence(self):
        if self.is_recurring and self.recurrence_interval is None:
            raise ValueError("recurring tasks require a recurrence_interval")
        return self
