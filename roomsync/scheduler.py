"""Reservation conflict detection and atomic commit.

Two reservations on the same resource conflict when their half-open
intervals ``[start, end)`` overlap, i.e. ``s1 < e2 and s2 < e1``. Back-to-back
reservations (one ends exactly when the next starts) do not conflict, and
cancelled reservations never take part in the check.

The conflict query and the insert run in one transaction while the
resource row is locked (see :mod:`roomsync.locking`), so two concurrent
callers asking for overlapping windows on the same resource are serialized
and exactly one of them succeeds.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from .clock import as_utc, utcnow
from .errors import NotFoundError, ReservationConflictError, ValidationError
from .gate import AuthorizationGate
from .locking import resource_lock, unit_of_work
from .models import Reservation
from .principal import Principal
from .registry import ResourceRegistry
from .schemas import ReservationFilter

logger = logging.getLogger(__name__)


class ReservationScheduler:
    def __init__(self, db: Session, gate: AuthorizationGate) -> None:
        self.db = db
        self.gate = gate

    def find_conflict(
        self,
        resource_id: int,
        start: datetime,
        end: datetime,
    ) -> Optional[Reservation]:
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.resource_id == resource_id,
                Reservation.cancelled.is_(False),
                Reservation.start < end,
                Reservation.end > start,
            )
            .order_by(Reservation.start)
            .first()
        )

    def is_available(self, resource_id: int, start: datetime, end: datetime) -> bool:
        start, end = _validated_window(start, end)
        ResourceRegistry(self.db).get(resource_id, active_only=True)
        return self.find_conflict(resource_id, start, end) is None

    def create(
        self,
        resource_id: int,
        principal: Principal,
        title: str,
        start: datetime,
        end: datetime,
        description: Optional[str] = None,
    ) -> Reservation:
        start, end = _validated_window(start, end)
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title must not be blank")

        with resource_lock(self.db, resource_id) as room:
            if room is None or not room.is_active:
                raise NotFoundError("Resource not found or inactive", resource_id=resource_id)
            conflict = self.find_conflict(resource_id, start, end)
            if conflict is not None:
                logger.info(
                    "Reservation rejected: resource %s %s-%s overlaps reservation %s",
                    resource_id,
                    start.isoformat(),
                    end.isoformat(),
                    conflict.id,
                )
                raise ReservationConflictError(resource_id, start, end, conflict.id)
            reservation = Reservation(
                resource_id=resource_id,
                principal_id=principal.user_id,
                principal_label=principal.label,
                title=title,
                description=description,
                start=start,
                end=end,
            )
            self.db.add(reservation)

        self.db.refresh(reservation)
        logger.info(
            "Reservation %s created on resource %s for %s (%s-%s)",
            reservation.id,
            resource_id,
            principal.label,
            start.isoformat(),
            end.isoformat(),
        )
        return reservation

    def get(self, reservation_id: int) -> Reservation:
        reservation = (
            self.db.query(Reservation)
            .options(joinedload(Reservation.resource))
            .filter(Reservation.id == reservation_id)
            .first()
        )
        if reservation is None:
            raise NotFoundError("Reservation not found", reservation_id=reservation_id)
        return reservation

    def cancel(self, reservation_id: int, principal: Principal) -> Reservation:
        """Mark a reservation cancelled; the row and its other fields are kept."""
        reservation = self.get(reservation_id)
        self.gate.require_owner_or_admin(principal, reservation.principal_id)
        if reservation.cancelled:
            return reservation
        with unit_of_work(self.db):
            reservation.cancelled = True
        self.db.refresh(reservation)
        logger.info("Reservation %s cancelled by %s", reservation_id, principal.label)
        return reservation

    def list(
        self,
        period: ReservationFilter = ReservationFilter.ALL,
        now: Optional[datetime] = None,
        include_cancelled: bool = False,
        principal_id: Optional[int] = None,
    ) -> List[Reservation]:
        now = as_utc(now) if now is not None else utcnow()
        query = self.db.query(Reservation).options(joinedload(Reservation.resource))
        if not include_cancelled:
            query = query.filter(Reservation.cancelled.is_(False))
        if principal_id is not None:
            query = query.filter(Reservation.principal_id == principal_id)
        if period is ReservationFilter.UPCOMING:
            query = query.filter(Reservation.start > now)
        elif period is ReservationFilter.PAST:
            query = query.filter(Reservation.start <= now)
        return query.order_by(Reservation.start, Reservation.id).all()


def _validated_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start, end = as_utc(start), as_utc(end)
    if end <= start:
        raise ValidationError("End time must be after start time")
    return start, end
