"""Persistence layer for ProTIvity."""

from protivity.database.errors import (
    CorruptDataError,
    PersistenceError,
    PersistenceWriteError,
    SerializationError,
)
from protivity.database.gateway import LoadResult, PersistenceGateway

__all__ = [
    "CorruptDataError",
    "PersistenceError",
    "PersistenceWriteError",
    "SerializationError",
    "LoadResult",
    "PersistenceGateway",
]
