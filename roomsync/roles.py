"""Role assignments keyed by principal, including pre-provisioned labels."""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ConflictError, NotFoundError
from .locking import unit_of_work
from .models import RoleAssignment, RoleEnum
from .principal import AuthenticatedKey, PendingKey, Principal, PrincipalKey, normalize_label

logger = logging.getLogger(__name__)

SYSTEM_GRANTOR = "system"


class RoleStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find(self, key: PrincipalKey) -> Optional[RoleAssignment]:
        query = self.db.query(RoleAssignment)
        if isinstance(key, AuthenticatedKey):
            return query.filter(RoleAssignment.user_id == key.user_id).first()
        return query.filter(RoleAssignment.principal_label == normalize_label(key.label)).first()

    def assignment_for(self, principal: Principal) -> Optional[RoleAssignment]:
        assignment = self.find(principal.key)
        if assignment is not None:
            return assignment
        # Not reconciled yet: a pending grant still applies to its label.
        pending = self.find(PendingKey(principal.label))
        if pending is not None and pending.pending:
            return pending
        return None

    def role_of(self, principal: Principal) -> RoleEnum:
        assignment = self.assignment_for(principal)
        return assignment.role if assignment is not None else RoleEnum.USER

    def list(self) -> List[RoleAssignment]:
        return (
            self.db.query(RoleAssignment)
            .order_by(RoleAssignment.created_at.desc(), RoleAssignment.id.desc())
            .all()
        )

    def grant(self, label: str, role: RoleEnum, granted_by: str) -> RoleAssignment:
        """Assign a role to a label, possibly before that principal exists.

        A label can hold a single assignment; a second grant is a conflict and
        callers must use :meth:`update` instead.
        """
        label = normalize_label(label)
        if self.find(PendingKey(label)) is not None:
            raise ConflictError(f"A role is already assigned to {label}", principal_label=label)

        assignment = RoleAssignment(principal_label=label, role=role, granted_by=granted_by)
        try:
            with unit_of_work(self.db):
                self.db.add(assignment)
        except IntegrityError as exc:
            raise ConflictError(f"A role is already assigned to {label}", principal_label=label) from exc
        self.db.refresh(assignment)
        logger.info("Role %s granted to %s by %s", role.value, label, granted_by)
        return assignment

    def update(self, key: PrincipalKey, new_role: RoleEnum, granted_by: str) -> RoleAssignment:
        assignment = self.find(key)
        if assignment is None:
            raise NotFoundError("Role assignment not found")
        with unit_of_work(self.db):
            assignment.role = new_role
            assignment.granted_by = granted_by
        self.db.refresh(assignment)
        logger.info("Role of %s changed to %s by %s", assignment.principal_label, new_role.value, granted_by)
        return assignment

    def reconcile(self, principal: Principal) -> Optional[RoleAssignment]:
        """Bind a pending grant to the principal the first time it authenticates."""
        assignment = self.find(principal.key)
        if assignment is not None:
            return assignment
        pending = self.find(PendingKey(principal.label))
        if pending is None or not pending.pending:
            return None
        with unit_of_work(self.db):
            pending.user_id = principal.user_id
        self.db.refresh(pending)
        logger.info("Pending role for %s bound to user %s", pending.principal_label, principal.user_id)
        return pending

    def ensure_bootstrap_admin(self, label: str) -> RoleAssignment:
        existing = self.find(PendingKey(label))
        if existing is not None:
            return existing
        return self.grant(label, RoleEnum.ADMIN, SYSTEM_GRANTOR)
