"""SQLAlchemy engine and session handling for the crawl and issue store."""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/techseo.db"


class Base(DeclarativeBase):
    """Declarative base for the crawl, page and issue tables."""


_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def resolve_database_url(database_url: Optional[str] = None) -> str:
    """Explicit URL, else ``DATABASE_URL``, else the local SQLite file."""
    return database_url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def _on_sqlite_connect(dbapi_conn, connection_record):
    # Cascading deletes of pages and issues rely on enforced foreign keys.
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


def _engine_options(database_url: str, echo: bool) -> dict:
    options: dict = {"echo": echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        return options
    options["connect_args"] = {"check_same_thread": False}
    if ":memory:" in database_url:
        # Every session must see the same in-memory database.
        options["poolclass"] = StaticPool
    else:
        db_file = database_url.split("sqlite:///", 1)[-1]
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    return options


def get_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Later calls return the cached engine whatever URL they pass; call
    :func:`reset_engine` to switch databases.
    """
    global _engine
    if _engine is None:
        url = resolve_database_url(database_url)
        _engine = create_engine(url, **_engine_options(url, echo))
        if url.startswith("sqlite"):
            event.listen(_engine, "connect", _on_sqlite_connect)
        logger.info("Database engine created: %s", url)
    return _engine


def _session_factory() -> sessionmaker:
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _SessionFactory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Transactional session: commits on success, rolls back and re-raises on error.

    Usage::

        with get_session() as session:
            session.add(SiteCrawl(domain="example.com"))
    """
    session = _session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _create_tables(engine: Engine, drop_first: bool = False) -> None:
    # Registers the models on Base.metadata.
    import techseo.models  # noqa: F401
    if drop_first:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def init_db(database_url: Optional[str] = None, echo: bool = False) -> None:
    """Create any missing crawl, page and issue tables."""
    _create_tables(get_engine(database_url=database_url, echo=echo))
    logger.info("Database tables created / verified.")


def reset_db(database_url: Optional[str] = None) -> None:
    """Drop and recreate every table.  Destroys all stored crawls."""
    _create_tables(get_engine(database_url=database_url), drop_first=True)
    logger.warning("Database reset: all crawls, pages and issues dropped.")


def table_names() -> list[str]:
    """Tables present in the connected database."""
    return inspect(get_engine()).get_table_names()


def reset_engine() -> None:
    """Dispose of the cached engine and session factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
