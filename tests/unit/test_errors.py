"""Unit tests for the error-to-response mapping."""
from datetime import datetime

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from roomsync.errors import NotFoundError, ReservationConflictError, install_error_handlers


def build_app() -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/store-failure")
    def store_failure() -> None:
        raise OperationalError("SELECT secret_column FROM rooms", {"token": "hunter2"}, Exception("database is locked"))

    @app.get("/missing")
    def missing() -> None:
        raise NotFoundError("Resource not found", resource_id=7)

    @app.get("/conflict")
    def conflict() -> None:
        raise ReservationConflictError(3, datetime(2030, 1, 1, 10), datetime(2030, 1, 1, 11), 9)

    @app.get("/typed")
    def typed(count: int) -> dict:
        return {"count": count}

    return app


def test_store_failure_is_a_generic_500():
    with TestClient(build_app()) as client:
        response = client.get("/store-failure")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error", "error": "internal_error"}
    assert "secret_column" not in response.text
    assert "hunter2" not in response.text
    assert "locked" not in response.text


def test_domain_errors_carry_their_context():
    with TestClient(build_app()) as client:
        missing = client.get("/missing")
        conflict = client.get("/conflict")

    assert missing.status_code == 404
    assert missing.json() == {"detail": "Resource not found", "error": "not_found", "resource_id": 7}
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "reservation_conflict"
    assert conflict.json()["conflicting_reservation_id"] == 9
    assert conflict.json()["start"] == "2030-01-01T10:00:00"


def test_request_validation_is_a_400():
    with TestClient(build_app()) as client:
        response = client.get("/typed", params={"count": "many"})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["errors"][0]["loc"] == ["query", "count"]
