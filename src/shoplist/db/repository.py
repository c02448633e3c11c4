"""Database engine and session management."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import ResourceClosedError
from sqlalchemy.orm import Session, sessionmaker

from shoplist.config import get_settings
from shoplist.errors import InvalidArgumentError, SchemaVersionError
from shoplist.db.models import SCHEMA_VERSION, Base

DATABASE_SUFFIX = ".db"

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def resolve_database_path(location: Path | str, name: Optional[str] = None) -> Path:
    """Return the database file for ``location``/``name`` with the ``.db`` suffix applied."""

    path = Path(location) / name if name is not None else Path(location)
    if not path.name.endswith(DATABASE_SUFFIX):
        path = path.with_name(path.name + DATABASE_SUFFIX)
    return path


def _ensure_schema(connection: Connection, path: Path) -> None:
    version = connection.exec_driver_sql("PRAGMA user_version").scalar() or 0
    if version > SCHEMA_VERSION:
        raise SchemaVersionError(
            f"{path} has schema version {version}; only version {SCHEMA_VERSION} is supported"
        )
    if version == SCHEMA_VERSION:
        logger.debug("Database schema already initialized at %s", path)
        return

    Base.metadata.create_all(connection)
    connection.exec_driver_sql(f"PRAGMA user_version = {SCHEMA_VERSION}")
    logger.info("Created schema version %s in %s", SCHEMA_VERSION, path)


class Database:
    """Open handle to a shoplist SQLite database."""

    def __init__(self, engine: Engine, path: Path):
        self.engine = engine
        self.path = path
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, autoflush=False, autocommit=False
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get_session(self) -> Session:
        """Return a new SQLAlchemy session bound to this database."""

        if self._closed:
            raise ResourceClosedError(f"Database {self.path} is closed")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Context manager yielding a session with automatic commit/rollback."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of the engine; further sessions raise ``ResourceClosedError``."""

        if self._closed:
            return
        self.engine.dispose()
        self._closed = True
        logger.debug("Closed database %s", self.path)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Database {self.path} ({state})>"


def open_database(location: Path | str, name: Optional[str] = None) -> Database:
    """
    Open or create the database file and make sure schema version 1 exists.

    When ``name`` is given, ``location`` is the directory holding the file. The ``.db``
    extension is appended when missing. The returned handle is writable and enforces
    foreign keys on every connection.
    """
    if location is None:
        raise InvalidArgumentError("Database location must not be None.")

    db_path = resolve_database_path(location, name)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # echo stays off so SQLAlchemy adds no handler of its own; records reach the root handler.
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    if get_settings().sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    event.listen(engine, "connect", _enable_foreign_keys)

    try:
        with engine.begin() as connection:
            _ensure_schema(connection, db_path)
    except Exception:
        engine.dispose()
        raise

    return Database(engine, db_path)


__all__ = [
    "DATABASE_SUFFIX",
    "Database",
    "open_database",
    "resolve_database_path",
]
