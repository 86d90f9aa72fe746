"""Principal identities and the keys role assignments are stored under."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


def normalize_label(label: str) -> str:
    return label.strip().lower()


@dataclass(frozen=True)
class AuthenticatedKey:
    """A principal that has established identity with the auth collaborator."""

    user_id: int


@dataclass(frozen=True)
class PendingKey:
    """A principal known only by label, pre-provisioned before first login."""

    label: str


PrincipalKey = Union[AuthenticatedKey, PendingKey]


@dataclass(frozen=True)
class Principal:
    """The authenticated caller attached to a request."""

    user_id: int
    label: str

    @property
    def key(self) -> AuthenticatedKey:
        return AuthenticatedKey(self.user_id)


def parse_principal_key(raw: str) -> PrincipalKey:
    """Read a principal reference from a URL segment.

    All-digit values address an authenticated user id; anything else is a
    label. Labels are email addresses, so the two never collide.
    """
    value = raw.strip()
    if value.isdigit():
        return AuthenticatedKey(int(value))
    return PendingKey(normalize_label(value))
