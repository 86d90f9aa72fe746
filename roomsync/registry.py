"""Bookable resources (rooms) and their soft-delete guard."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from .clock import utcnow
from .errors import ConflictError, NotFoundError
from .locking import resource_lock, unit_of_work
from .models import Reservation, Room

logger = logging.getLogger(__name__)


class ResourceRegistry:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        capacity: Optional[int] = None,
        equipment: Optional[str] = None,
        location: Optional[tuple[float, float]] = None,
    ) -> Room:
        room = Room(
            name=name,
            description=description,
            capacity=capacity,
            equipment=equipment,
            location_x=location[0] if location else None,
            location_y=location[1] if location else None,
        )
        with unit_of_work(self.db):
            self.db.add(room)
        self.db.refresh(room)
        logger.info("Resource %s created (%s)", room.id, room.name)
        return room

    def get(self, resource_id: int, active_only: bool = False) -> Room:
        query = self.db.query(Room).filter(Room.id == resource_id)
        if active_only:
            query = query.filter(Room.is_active.is_(True))
        room = query.first()
        if room is None:
            raise NotFoundError("Resource not found", resource_id=resource_id)
        return room

    def list(self, include_inactive: bool = False) -> List[Room]:
        query = self.db.query(Room)
        if not include_inactive:
            query = query.filter(Room.is_active.is_(True))
        return query.order_by(Room.name, Room.id).all()

    def delete(self, resource_id: int, now: Optional[datetime] = None) -> Room:
        """Soft-delete a resource that has no live reservations.

        A reservation is live while it is not cancelled and its end is still
        ahead of ``now``; in-progress reservations count. The check runs under
        the same resource lock reservation creation takes.
        """
        now = now or utcnow()
        with resource_lock(self.db, resource_id) as room:
            if room is None:
                raise NotFoundError("Resource not found", resource_id=resource_id)
            if room.is_active:
                live = (
                    self.db.query(Reservation.id)
                    .filter(
                        Reservation.resource_id == resource_id,
                        Reservation.cancelled.is_(False),
                        Reservation.end > now,
                    )
                    .first()
                )
                if live is not None:
                    raise ConflictError("Resource has active reservations", resource_id=resource_id)
                room.is_active = False
        self.db.refresh(room)
        logger.info("Resource %s deactivated", resource_id)
        return room
