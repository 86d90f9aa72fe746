"""Reusable FastAPI dependencies for the principal, the database and the core components."""
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .artifacts import ArtifactVersionStore
from .auth import principal_from_token
from .database import get_db
from .errors import AuthenticationError
from .gate import AuthorizationGate
from .principal import Principal
from .registry import ResourceRegistry
from .roles import RoleStore
from .scheduler import ReservationScheduler

oauth_scheme = OAuth2PasswordBearer(tokenUrl="/users/login", auto_error=False)


def get_role_store(db: Session = Depends(get_db)) -> RoleStore:
    return RoleStore(db)


def get_gate(roles: RoleStore = Depends(get_role_store)) -> AuthorizationGate:
    return AuthorizationGate(roles)


def get_current_principal(
    token: Optional[str] = Depends(oauth_scheme),
    roles: RoleStore = Depends(get_role_store),
) -> Principal:
    """Resolve the caller from its bearer token.

    The first request of a principal that was granted a role by label before
    it ever authenticated binds that grant to its user id.
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    principal = principal_from_token(token)
    roles.reconcile(principal)
    return principal


def get_registry(db: Session = Depends(get_db)) -> ResourceRegistry:
    return ResourceRegistry(db)


def get_scheduler(
    db: Session = Depends(get_db),
    gate: AuthorizationGate = Depends(get_gate),
) -> ReservationScheduler:
    return ReservationScheduler(db, gate)


def get_office_map_store(db: Session = Depends(get_db)) -> ArtifactVersionStore:
    return ArtifactVersionStore(db)
