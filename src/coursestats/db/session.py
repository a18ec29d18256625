"""Database session management for file-backed SQLite stores."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from coursestats.config import get_settings
from coursestats.db.schema import Base

# Engines keyed by resolved database path
_engine_cache: dict[str, Engine] = {}


def get_engine(db_path: Path | None = None) -> Engine:
    """Get the cached engine for db_path, creating it on first use.

    Args:
        db_path: Path to SQLite database file. Defaults to settings.db_path.
    """
    db_path = Path(db_path if db_path is not None else get_settings().db_path)
    cache_key = str(db_path.resolve())

    if cache_key not in _engine_cache:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        _engine_cache[cache_key] = create_engine(f"sqlite:///{db_path}", echo=False)

    return _engine_cache[cache_key]


@contextmanager
def get_db_session(db_path: Path | None = None) -> Generator[Session, None, None]:
    """Session that commits on success, rolls back on error, and always closes.

    Example:
        with get_db_session() as session:
            update_all_caches(session, ready_for_update(session))
    """
    session = Session(get_engine(db_path))
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_path: Path | None = None) -> None:
    """Create all tables if they do not exist."""
    Base.metadata.create_all(get_engine(db_path))
