"""Shared pydantic base for ProTIvity entities."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Generate a fresh entity identifier (UUID v4)."""
    return str(uuid.uuid4())


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive local time; naive values pass through.

    All stored dates are naive local time so they compare against the local
    clock. Records written with an offset (e.g. a trailing "Z") are shifted.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Entity(BaseModel):
    """Base for all persisted entities.

    Equality and hashing are by identity: two entities with identical fields
    but different ids are distinct, and an edited copy still equals the stored
    original.
    """

    id: str = Field(default_factory=new_id, description="Unique identifier (UUID v4)")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))
