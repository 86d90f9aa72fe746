"""Transaction and lock helpers for check-then-write sequences.

Every sequence that reads state and then writes based on it (reservation
conflict check + insert, resource delete guard + deactivate, artifact
deactivate + insert) runs inside :func:`unit_of_work` while holding one of
the locks below until the commit.
"""
from __future__ import annotations

import zlib
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from .database import BEGIN_IMMEDIATE
from .models import Room


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Run the block in a fresh write transaction.

    Any read transaction the session already holds is ended first, so the
    block starts with the write lock taken (``BEGIN IMMEDIATE`` on SQLite).
    Commits when the block completes, rolls back and re-raises otherwise.
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={BEGIN_IMMEDIATE: True})
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def lock_resource_row(db: Session, resource_id: int) -> Optional[Room]:
    # SELECT ... FOR UPDATE on PostgreSQL; SQLite already holds the database
    # write lock from BEGIN IMMEDIATE.
    return db.query(Room).filter(Room.id == resource_id).with_for_update().one_or_none()


@contextmanager
def resource_lock(db: Session, resource_id: int) -> Iterator[Optional[Room]]:
    """Serialize work on one resource for the duration of a transaction.

    Yields the locked room row, or ``None`` when it does not exist.
    """
    with unit_of_work(db):
        yield lock_resource_row(db, resource_id)


def lock_key(name: str) -> int:
    return zlib.crc32(name.encode("utf-8")) & 0x7FFFFFFF


def advisory_lock(db: Session, name: str) -> None:
    """Take a transaction-scoped named lock, released at commit or rollback."""
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": lock_key(name)})
