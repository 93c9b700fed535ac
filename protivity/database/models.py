"""SQLAlchemy database models for ProTIvity."""

from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, LargeBinary, String

from protivity.database.database import Base


class CollectionBlobDB(Base):
    """One persisted top-level collection (workspaces, tasks, goals, ...)."""

    __tablename__ = "collections"

    key = Column(String, primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    schema_version = Column(Integer, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
