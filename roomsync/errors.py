"""Error taxonomy raised by the core components and its HTTP mapping."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from circuitbreaker import CircuitBreakerError
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class RoomSyncError(Exception):
    """Base class for every error surfaced to callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, detail: str, **context: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.detail, "error": self.code}
        payload.update(self.context)
        return payload


class ValidationError(RoomSyncError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class AuthenticationError(RoomSyncError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_required"


class AuthorizationError(RoomSyncError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(RoomSyncError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(RoomSyncError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class ReservationConflictError(ConflictError):
    """An overlapping, non-cancelled reservation already holds the window."""

    code = "reservation_conflict"

    def __init__(
        self,
        resource_id: int,
        start: datetime,
        end: datetime,
        conflicting_id: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"Resource {resource_id} is already reserved between {start.isoformat()} and {end.isoformat()}",
            resource_id=resource_id,
            start=start.isoformat(),
            end=end.isoformat(),
            conflicting_reservation_id=conflicting_id,
        )
        self.resource_id = resource_id
        self.start = start
        self.end = end
        self.conflicting_id = conflicting_id


class InternalError(RoomSyncError):
    pass


def _roomsync_error_handler(_: Request, exc: RoomSyncError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "error": ValidationError.code, "errors": errors},
    )


def _store_failure_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError("Internal server error").to_payload(),
    )


def _circuit_open_handler(_: Request, exc: CircuitBreakerError) -> JSONResponse:
    logger.warning("Circuit open: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable", "error": "unavailable"},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto JSON responses for an app."""

    app.add_exception_handler(RoomSyncError, _roomsync_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _store_failure_handler)  # type: ignore[arg-type]
    app.add_exception_handler(CircuitBreakerError, _circuit_open_handler)  # type: ignore[arg-type]
