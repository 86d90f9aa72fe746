from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from roomsync.app_factory import create_service_app
from roomsync.clock import as_utc
from roomsync.database import get_db
from roomsync.dependencies import get_current_principal, get_gate, get_scheduler
from roomsync.gate import AuthorizationGate
from roomsync.models import Reservation, RoleEnum
from roomsync.principal import Principal
from roomsync.rate_limit import limiter
from roomsync.scheduler import ReservationScheduler
from roomsync.schemas import (
    AvailabilityRead,
    IdResponse,
    ReservationCreate,
    ReservationFilter,
    ReservationRead,
    StatsRead,
)
from roomsync.stats import collect_stats

router = APIRouter(tags=["reservations"])


@router.get("/reservations", response_model=List[ReservationRead])
@limiter.limit("30/minute")
def list_reservations(
    request: Request,
    period: ReservationFilter = Query(ReservationFilter.ALL, alias="filter"),
    include_cancelled: bool = False,
    mine: bool = False,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> List[Reservation]:
    gate.require(principal, RoleEnum.USER)
    return scheduler.list(
        period=period,
        include_cancelled=include_cancelled,
        principal_id=principal.user_id if mine else None,
    )


@router.get("/reservations/availability", response_model=AvailabilityRead)
@limiter.limit("40/minute")
def check_availability(
    request: Request,
    resource_id: int,
    start: datetime = Query(...),
    end: datetime = Query(...),
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> AvailabilityRead:
    gate.require(principal, RoleEnum.USER)
    start, end = as_utc(start), as_utc(end)
    available = scheduler.is_available(resource_id, start, end)
    return AvailabilityRead(resource_id=resource_id, start=start, end=end, available=available)


@router.post("/reservations", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_reservation(
    request: Request,
    reservation_in: ReservationCreate,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> IdResponse:
    gate.require(principal, RoleEnum.USER)
    reservation = scheduler.create(
        resource_id=reservation_in.resource_id,
        principal=principal,
        title=reservation_in.title,
        start=reservation_in.start,
        end=reservation_in.end,
        description=reservation_in.description,
    )
    return IdResponse(id=reservation.id)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationRead)
@limiter.limit("20/minute")
def cancel_reservation(
    request: Request,
    reservation_id: int,
    principal: Principal = Depends(get_current_principal),
    scheduler: ReservationScheduler = Depends(get_scheduler),
) -> Reservation:
    # Ownership-or-admin is checked by the scheduler once the row is loaded.
    return scheduler.cancel(reservation_id, principal)


@router.get("/admin/stats", response_model=StatsRead)
@limiter.limit("30/minute")
def admin_stats(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db),
) -> StatsRead:
    gate.require(principal, RoleEnum.ADMIN)
    return collect_stats(db)


app = create_service_app("Reservations Service", "reservations", router)
