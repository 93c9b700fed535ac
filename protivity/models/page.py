"""Page data model for ProTIvity."""

from datetime import datetime

from pydantic import Field, field_validator

from protivity.models.base import Entity, to_local_naive


class Page(Entity):
    """Freeform page living inside a workspace."""

    title: str = Field(..., description="Page title")
    content: str = Field("", description="Page body")
    date_created: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    date_modified: datetime = Field(default_factory=datetime.now, description="Last title/content change")

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title must not be empty")
        return v

    @field_validator("date_created", "date_modified")
    @classmethod
    def _normalize_stamps(cls, v):
        return to_local_naive(v)
