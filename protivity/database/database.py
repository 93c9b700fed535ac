"""Database connection and session management for ProTIvity.

Collections are stored as blobs in a local SQLite file by default. Any
SQLAlchemy URL can be supplied via `PROTIVITY_DATABASE_URL`.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv

load_dotenv()

# Database URL - SQLite file next to the working directory by default
DATABASE_URL = os.getenv("PROTIVITY_DATABASE_URL", "sqlite:///./protivity.db")


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    This is separated to allow deterministic unit testing without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # The autosave timer writes from its own thread.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return engine_kwargs


def build_engine(database_url: str = None) -> Engine:
    url = database_url or DATABASE_URL
    engine = create_engine(url, **get_engine_kwargs(url))
    if _is_sqlite_url(url):
        event.listen(engine, "connect", set_sqlite_pragmas)
    return engine


def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Make SQLite commits durable before they return."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=FULL")
    cursor.close()


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for declarative models
Base = declarative_base()


def init_db(engine: Engine) -> None:
    """Create the collection table if it does not exist yet."""
    # Import so the table is registered on Base.metadata
    from protivity.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
