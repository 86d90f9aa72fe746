"""SQLAlchemy models shared across all services."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy import Boolean, DateTime, Enum as SqlEnum, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .clock import utcnow
from .database import Base
from .principal import AuthenticatedKey, PendingKey, PrincipalKey


class RoleEnum(str, Enum):
    USER = "user"
    ADMIN = "admin"


ROLE_RANK: Dict[RoleEnum, int] = {RoleEnum.USER: 0, RoleEnum.ADMIN: 1}


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), default=None)
    hashed_password: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, default=None)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, default=None)
    equipment: Mapped[Optional[str]] = mapped_column(Text, default=None)
    location_x: Mapped[Optional[float]] = mapped_column(Float, default=None)
    location_y: Mapped[Optional[float]] = mapped_column(Float, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    reservations: Mapped[List["Reservation"]] = relationship(back_populates="resource")

    @property
    def location(self) -> Optional[Dict[str, float]]:
        if self.location_x is None or self.location_y is None:
            return None
        return {"x": self.location_x, "y": self.location_y}


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (Index("ix_reservations_resource_window", "resource_id", "cancelled", "start", "end"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    resource_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), index=True)
    principal_id: Mapped[int] = mapped_column(Integer, index=True)
    principal_label: Mapped[str] = mapped_column(String(255))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, default=None)
    start: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    cancelled: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    resource: Mapped[Room] = relationship(back_populates="reservations")

    @property
    def resource_name(self) -> str:
        return self.resource.name


class RoleAssignment(Base):
    __tablename__ = "role_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # NULL until the labeled principal first authenticates.
    user_id: Mapped[Optional[int]] = mapped_column(Integer, unique=True, default=None)
    principal_label: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[RoleEnum] = mapped_column(SqlEnum(RoleEnum), default=RoleEnum.USER)
    granted_by: Mapped[str] = mapped_column(String(255), default="system")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def principal_key(self) -> PrincipalKey:
        if self.user_id is None:
            return PendingKey(self.principal_label)
        return AuthenticatedKey(self.user_id)

    @property
    def pending(self) -> bool:
        return self.user_id is None


class Artifact(Base):
    __tablename__ = "artifacts"
    __table_args__ = (
        Index(
            "uq_artifacts_single_active",
            "kind",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    kind: Mapped[str] = mapped_column(String(50), index=True)
    filename: Mapped[str] = mapped_column(String(255))
    blob_url: Mapped[str] = mapped_column(Text)
    original_name: Mapped[str] = mapped_column(String(255))
    content_type: Mapped[Optional[str]] = mapped_column(String(100), default=None)
    size_bytes: Mapped[Optional[int]] = mapped_column(Integer, default=None)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
