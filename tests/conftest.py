import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_roomsync.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./logs")
os.environ.setdefault("UPLOAD_DIR", "./test_uploads")

from roomsync.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from roomsync.auth import create_principal_token  # noqa: E402
from roomsync.database import Base, SessionLocal, engine  # noqa: E402
from roomsync.models import RoleEnum  # noqa: E402
from roomsync.principal import Principal  # noqa: E402
from roomsync.roles import RoleStore  # noqa: E402
from services.gateway.app import app as gateway_app  # noqa: E402
from services.identity.app import app as identity_app  # noqa: E402
from services.office_map.app import app as office_map_app  # noqa: E402
from services.reservations.app import app as reservations_app  # noqa: E402
from services.resources.app import app as resources_app  # noqa: E402
from services.roles.app import app as roles_app  # noqa: E402

ADMIN = Principal(user_id=100, label="admin@example.com")
ALICE = Principal(user_id=1, label="alice@example.com")
BOB = Principal(user_id=2, label="bob@example.com")


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_header(principal: Principal) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_principal_token(principal)}"}


def grant_admin(principal: Principal) -> None:
    with SessionLocal() as session:
        store = RoleStore(session)
        store.grant(principal.label, RoleEnum.ADMIN, granted_by="system")
        store.reconcile(principal)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    grant_admin(ADMIN)
    return auth_header(ADMIN)


@pytest.fixture()
def alice_headers() -> dict[str, str]:
    return auth_header(ALICE)


@pytest.fixture()
def bob_headers() -> dict[str, str]:
    return auth_header(BOB)


@pytest.fixture()
def make_headers() -> Callable[[Principal], dict[str, str]]:
    return auth_header


@pytest.fixture()
def identity_client() -> Generator[TestClient, None, None]:
    with TestClient(identity_app) as client:
        yield client


@pytest.fixture()
def resources_client() -> Generator[TestClient, None, None]:
    with TestClient(resources_app) as client:
        yield client


@pytest.fixture()
def reservations_client() -> Generator[TestClient, None, None]:
    with TestClient(reservations_app) as client:
        yield client


@pytest.fixture()
def roles_client() -> Generator[TestClient, None, None]:
    with TestClient(roles_app) as client:
        yield client


@pytest.fixture()
def office_map_client() -> Generator[TestClient, None, None]:
    with TestClient(office_map_app) as client:
        yield client


@pytest.fixture()
def gateway_client() -> Generator[TestClient, None, None]:
    with TestClient(gateway_app) as client:
        yield client
