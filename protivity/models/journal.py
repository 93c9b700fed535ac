"""JournalEntry data model for ProTIvity."""

from datetime import datetime

from pydantic import Field, field_validator

from protivity.models.base import Entity, to_local_naive


class JournalEntry(Entity):
    """A dated free-text journal thought.

    The week grouping fields are derived from ``date`` on every read and are
    never persisted.
    """

    thoughts: str = Field(..., description="Free-text thoughts")
    date: datetime = Field(default_factory=datetime.now, description="Entry timestamp")

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, v):
        return to_local_naive(v)

    @property
    def week_of_year(self) -> int:
        return self.date.isocalendar()[1]

    @property
    def year(self) -> int:
        # ISO year, so that week 1 / week 52 keys never straddle a calendar year
        return self.date.isocalendar()[0]

    @property
    def week_year_key(self) -> str:
        return f"{self.week_of_year}/{self.year}"
