from typing import List

from circuitbreaker import circuit
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import SQLAlchemyError

from roomsync.app_factory import create_service_app
from roomsync.dependencies import get_current_principal, get_gate, get_registry
from roomsync.gate import AuthorizationGate
from roomsync.models import RoleEnum, Room
from roomsync.principal import Principal
from roomsync.rate_limit import limiter
from roomsync.registry import ResourceRegistry
from roomsync.schemas import IdResponse, ResourceCreate, ResourceRead, SuccessResponse

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=List[ResourceRead])
@circuit(failure_threshold=5, recovery_timeout=60, expected_exception=SQLAlchemyError)
def list_resources(
    request: Request,
    include_inactive: bool = False,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    registry: ResourceRegistry = Depends(get_registry),
) -> List[Room]:
    gate.require(principal, RoleEnum.ADMIN if include_inactive else RoleEnum.USER)
    return registry.list(include_inactive)


@router.post("", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def create_resource(
    request: Request,
    resource_in: ResourceCreate,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    registry: ResourceRegistry = Depends(get_registry),
) -> IdResponse:
    gate.require(principal, RoleEnum.ADMIN)
    location = resource_in.location
    room = registry.create(
        name=resource_in.name,
        description=resource_in.description,
        capacity=resource_in.capacity,
        equipment=resource_in.equipment,
        location=(location.x, location.y) if location else None,
    )
    return IdResponse(id=room.id)


@router.get("/{resource_id}", response_model=ResourceRead)
@limiter.limit("60/minute")
def get_resource(
    request: Request,
    resource_id: int,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    registry: ResourceRegistry = Depends(get_registry),
) -> Room:
    gate.require(principal, RoleEnum.USER)
    return registry.get(resource_id)


@router.delete("/{resource_id}", response_model=SuccessResponse)
@limiter.limit("15/minute")
def delete_resource(
    request: Request,
    resource_id: int,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    registry: ResourceRegistry = Depends(get_registry),
) -> SuccessResponse:
    gate.require(principal, RoleEnum.ADMIN)
    registry.delete(resource_id)
    return SuccessResponse()


app = create_service_app("Resources Service", "resources", router)
