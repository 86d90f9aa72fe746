"""Versioned artifacts with exactly one current version per kind."""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from .blobs import BlobRef
from .clock import utcnow
from .locking import advisory_lock, unit_of_work
from .models import Artifact

logger = logging.getLogger(__name__)

OFFICE_MAP = "office_map"


class ArtifactVersionStore:
    """Publish new versions of an artifact while keeping every old one.

    ``publish`` deactivates the current version and inserts the new one in a
    single transaction, serialized per kind, so the durable state always has
    zero (before the first publish) or exactly one active row.
    """

    def __init__(self, db: Session, kind: str = OFFICE_MAP) -> None:
        self.db = db
        self.kind = kind

    def publish(
        self,
        blob_ref: BlobRef,
        original_name: str,
        content_type: Optional[str] = None,
        size_bytes: Optional[int] = None,
    ) -> Artifact:
        artifact = Artifact(
            kind=self.kind,
            filename=blob_ref.filename,
            blob_url=blob_ref.url,
            original_name=original_name,
            content_type=content_type,
            size_bytes=size_bytes,
            active=True,
        )
        with unit_of_work(self.db):
            advisory_lock(self.db, f"artifact:{self.kind}")
            self.db.execute(
                update(Artifact)
                .where(Artifact.kind == self.kind, Artifact.active.is_(True))
                .values(active=False, updated_at=utcnow())
            )
            self.db.add(artifact)
        self.db.refresh(artifact)
        logger.info("Published %s version %s (%s)", self.kind, artifact.id, original_name)
        return artifact

    def current_active(self) -> Optional[Artifact]:
        return (
            self.db.query(Artifact)
            .filter(Artifact.kind == self.kind, Artifact.active.is_(True))
            .order_by(Artifact.created_at.desc(), Artifact.id.desc())
            .first()
        )

    def history(self) -> List[Artifact]:
        return (
            self.db.query(Artifact)
            .filter(Artifact.kind == self.kind)
            .order_by(Artifact.created_at.desc(), Artifact.id.desc())
            .all()
        )
