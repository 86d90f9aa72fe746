"""Admin dashboard totals."""
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .clock import utcnow
from .models import Reservation, RoleAssignment, Room
from .schemas import StatsRead


def collect_stats(db: Session, now: Optional[datetime] = None) -> StatsRead:
    now = now or utcnow()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)

    live = db.query(func.count(Reservation.id)).filter(Reservation.cancelled.is_(False))
    return StatsRead(
        total_roles=db.query(func.count(RoleAssignment.id)).scalar() or 0,
        total_resources=db.query(func.count(Room.id)).filter(Room.is_active.is_(True)).scalar() or 0,
        total_reservations=live.scalar() or 0,
        reservations_today=live.filter(Reservation.start >= day_start, Reservation.start < day_end).scalar() or 0,
    )
