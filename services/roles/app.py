from typing import List

from fastapi import APIRouter, Depends, Request, status

from roomsync.app_factory import create_service_app
from roomsync.dependencies import get_current_principal, get_gate, get_role_store
from roomsync.gate import AuthorizationGate
from roomsync.models import RoleAssignment, RoleEnum
from roomsync.principal import Principal, parse_principal_key
from roomsync.rate_limit import limiter
from roomsync.roles import RoleStore
from roomsync.schemas import IdResponse, RoleAssignmentRead, RoleGrant, RoleUpdate, SuccessResponse

router = APIRouter(tags=["roles"])


@router.get("/roles", response_model=List[RoleAssignmentRead])
@limiter.limit("20/minute")
def list_roles(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    roles: RoleStore = Depends(get_role_store),
) -> List[RoleAssignment]:
    gate.require(principal, RoleEnum.ADMIN)
    return roles.list()


@router.post("/roles", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def grant_role(
    request: Request,
    grant: RoleGrant,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    roles: RoleStore = Depends(get_role_store),
) -> IdResponse:
    gate.require(principal, RoleEnum.ADMIN)
    assignment = roles.grant(grant.principal_label, grant.role, granted_by=principal.label)
    return IdResponse(id=assignment.id)


@router.put("/roles/{principal_id}", response_model=RoleAssignmentRead)
@limiter.limit("10/minute")
def update_role(
    request: Request,
    principal_id: str,
    role_update: RoleUpdate,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    roles: RoleStore = Depends(get_role_store),
) -> RoleAssignment:
    gate.require(principal, RoleEnum.ADMIN)
    return roles.update(parse_principal_key(principal_id), role_update.role, granted_by=principal.label)


@router.get("/admin/check-access", response_model=SuccessResponse)
def check_admin_access(
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
) -> SuccessResponse:
    gate.require(principal, RoleEnum.ADMIN)
    return SuccessResponse()


app = create_service_app("Roles Service", "roles", router)
