"""Engine, session factory and declarative base shared by every service."""
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


# Execution option read by the SQLite "begin" hook; unit_of_work sets it.
BEGIN_IMMEDIATE = "roomsync_begin_immediate"


def build_engine(url: str, busy_timeout: float = 30.0) -> Engine:
    """Create an engine whose write transactions are safe for check-then-write work.

    SQLite has no row locks. Plain reads open a deferred ``BEGIN`` and, with
    the WAL journal, never block or wait on writers. A connection carrying the
    ``BEGIN_IMMEDIATE`` execution option opens with ``BEGIN IMMEDIATE``
    instead: the write lock is taken up front and concurrent writers queue
    behind it rather than acting on a stale read.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, _connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(connection):  # type: ignore[no-untyped-def]
        if connection.get_execution_options().get(BEGIN_IMMEDIATE):
            connection.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            connection.exec_driver_sql("BEGIN")

    return engine


engine = build_engine(settings.database_url, settings.sqlite_busy_timeout)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
