"""Persistence gateway: named collections stored as versioned JSON blobs."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from protivity.database.database import build_engine, build_session_factory, init_db
from protivity.database.errors import CorruptDataError, PersistenceWriteError, SerializationError
from protivity.database.models import CollectionBlobDB
from protivity.models.constants import SCHEMA_VERSION

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class LoadResult(Generic[M]):
    """Outcome of loading one collection.

    ``error`` is set when stored data was unreadable; ``items`` is then empty.
    """

    items: List[M] = field(default_factory=list)
    error: Optional[CorruptDataError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PersistenceGateway:
    """Reads and writes whole collections under stable keys.

    Each blob is a JSON envelope ``{"version": N, "items": [...]}``. Writes
    happen in one transaction so a failed save never leaves a partial value.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str = None) -> "PersistenceGateway":
        """Build a gateway (and its table) for a database URL."""
        engine = build_engine(database_url)
        init_db(engine)
        return cls(build_session_factory(engine))

    def encode(self, key: str, entities: Sequence[BaseModel]) -> bytes:
        """Encode a collection into its stored bytes."""
        try:
            items = [entity.model_dump(mode="json", by_alias=True) for entity in entities]
            return json.dumps({"version": SCHEMA_VERSION, "items": items}).encode("utf-8")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(key, f"{type(e).__name__}: {str(e)}") from e

    def decode(self, key: str, payload: bytes, model: Type[M]) -> List[M]:
        """Decode stored bytes into entities, raising CorruptDataError if unreadable."""
        try:
            document = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CorruptDataError(key, f"undecodable payload: {str(e)}") from e

        # Records written before the envelope existed are a bare array
        if isinstance(document, list):
            items = document
        elif isinstance(document, dict) and isinstance(document.get("items"), list):
            items = document["items"]
            version = document.get("version")
            if isinstance(version, int) and version > SCHEMA_VERSION:
                logger.info(f"Collection {key} has newer schema version {version}; decoding known fields")
        else:
            raise CorruptDataError(key, "payload is not a collection envelope")

        try:
            return TypeAdapter(List[model]).validate_python(items)
        except ValidationError as e:
            raise CorruptDataError(key, f"invalid {model.__name__} records: {e.error_count()} error(s)") from e

    def save(self, key: str, entities: Sequence[BaseModel]) -> None:
        """Replace the collection stored under key.

        Raises:
            SerializationError: entities could not be encoded (nothing written)
            PersistenceWriteError: the write failed and was rolled back
        """
        payload = self.encode(key, entities)
        db = self.session_factory()
        try:
            row = db.get(CollectionBlobDB, key)
            if row is None:
                db.add(CollectionBlobDB(key=key, payload=payload, schema_version=SCHEMA_VERSION))
            else:
                row.payload = payload
                row.schema_version = SCHEMA_VERSION
                row.updated_at = datetime.utcnow()
            db.commit()
            logger.debug(f"Saved {len(entities)} records to {key} ({len(payload)} bytes)")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save {key}: {type(e).__name__}: {str(e)}")
            raise PersistenceWriteError(key, f"{type(e).__name__}: {str(e)}") from e
        finally:
            db.close()

    def load(self, key: str, model: Type[M]) -> LoadResult[M]:
        """Load the collection stored under key.

        A missing key is an empty collection. Corrupt data is logged and
        reported through ``LoadResult.error`` instead of raising.
        """
        db = self.session_factory()
        try:
            row = db.get(CollectionBlobDB, key)
            payload = bytes(row.payload) if row is not None else None
        finally:
            db.close()

        if payload is None:
            return LoadResult()
        try:
            return LoadResult(items=self.decode(key, payload, model))
        except CorruptDataError as e:
            logger.warning(f"Discarding corrupt collection {key}: {str(e)}")
            return LoadResult(error=e)

    def write_raw(self, key: str, payload: bytes) -> None:
        """Store bytes as-is under key (imports and maintenance)."""
        db = self.session_factory()
        try:
            row = db.get(CollectionBlobDB, key)
            if row is None:
                db.add(CollectionBlobDB(key=key, payload=payload, schema_version=0))
            else:
                row.payload = payload
                row.schema_version = 0
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceWriteError(key, f"{type(e).__name__}: {str(e)}") from e
        finally:
            db.close()

    def read_raw(self, key: str) -> Optional[bytes]:
        db = self.session_factory()
        try:
            row = db.get(CollectionBlobDB, key)
            return bytes(row.payload) if row is not None else None
        finally:
            db.close()

    def delete(self, key: str) -> bool:
        """Remove a stored collection. Returns False if it did not exist."""
        db = self.session_factory()
        try:
            row = db.get(CollectionBlobDB, key)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            logger.debug(f"Deleted collection {key}")
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete {key}: {type(e).__name__}: {str(e)}")
            raise PersistenceWriteError(key, f"{type(e).__name__}: {str(e)}") from e
        finally:
            db.close()

    def keys(self) -> List[str]:
        db = self.session_factory()
        try:
            return [row[0] for row in db.query(CollectionBlobDB.key).order_by(CollectionBlobDB.key).all()]
        finally:
            db.close()
