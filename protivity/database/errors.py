"""Persistence error types for ProTIvity."""


class PersistenceError(Exception):
    """Base class for failures of the persistence gateway."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key


class SerializationError(PersistenceError):
    """A collection could not be encoded; nothing was written."""


class PersistenceWriteError(PersistenceError):
    """The database rejected a write; the previous value is intact."""


class CorruptDataError(PersistenceError):
    """A stored collection could not be decoded and was treated as empty."""
