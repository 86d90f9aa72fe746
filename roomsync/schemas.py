"""Pydantic schemas shared across the services."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator, model_validator

from .clock import as_utc
from .models import RoleEnum


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_strip_required)]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: Optional[str] = Field(None, max_length=100)


class UserRead(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PrincipalRead(BaseModel):
    user_id: int
    label: str
    role: RoleEnum


class IdResponse(BaseModel):
    id: int


class SuccessResponse(BaseModel):
    success: bool = True


class Location(BaseModel):
    x: float
    y: float


class ResourceCreate(BaseModel):
    name: NonBlankStr = Field(..., max_length=100)
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)
    equipment: Optional[str] = None
    location: Optional[Location] = None


class ResourceRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    capacity: Optional[int] = None
    equipment: Optional[str] = None
    location: Optional[Location] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ReservationFilter(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"


class ReservationCreate(BaseModel):
    resource_id: int = Field(..., gt=0)
    title: NonBlankStr = Field(..., max_length=200)
    description: Optional[str] = None
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_window(self) -> "ReservationCreate":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class ReservationRead(BaseModel):
    id: int
    resource_id: int
    resource_name: str
    principal_id: int
    principal_label: str
    title: str
    description: Optional[str] = None
    start: datetime
    end: datetime
    cancelled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AvailabilityRead(BaseModel):
    resource_id: int
    start: datetime
    end: datetime
    available: bool


class RoleGrant(BaseModel):
    principal_label: EmailStr
    role: RoleEnum = RoleEnum.USER


class RoleUpdate(BaseModel):
    role: RoleEnum


class RoleAssignmentRead(BaseModel):
    id: int
    user_id: Optional[int] = None
    principal_label: str
    pending: bool
    role: RoleEnum
    granted_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArtifactRead(BaseModel):
    id: int
    kind: str
    filename: str
    blob_url: str
    original_name: str
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatsRead(BaseModel):
    total_roles: int
    total_resources: int
    total_reservations: int
    reservations_today: int
