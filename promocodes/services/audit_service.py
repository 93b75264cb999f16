"""Audit service for recording promotion code state changes."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from promocodes.repositories.audit_log_repository import AuditLogRepository


class AuditService:
    """Service for recording audit trail entries.

    ``commit=False`` writes the entry into the caller's open transaction so it
    lands or rolls back together with the change it describes.
    """

    def __init__(self, db: Session):
        self.repo = AuditLogRepository(db)

    def log_create(
        self,
        resource_type: str,
        resource_id: UUID,
        actor_type: str = "system",
        actor_id: str | None = None,
        data: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> None:
        """Log a resource creation event."""
        self.repo.create(
            resource_type=resource_type,
            resource_id=resource_id,
            action="created",
            changes=data or {},
            actor_type=actor_type,
            actor_id=actor_id,
            commit=commit,
        )

    def log_status_change(
        self,
        resource_type: str,
        resource_id: UUID,
        old_status: str,
        new_status: str,
        actor_type: str = "system",
        actor_id: str | None = None,
        commit: bool = True,
    ) -> None:
        """Log a status change event."""
        self.repo.create(
            resource_type=resource_type,
            resource_id=resource_id,
            action="status_changed",
            changes={"status": {"old": old_status, "new": new_status}},
            actor_type=actor_type,
            actor_id=actor_id,
            commit=commit,
        )

    def log_sweep(
        self,
        expired_count: int,
        exhausted_count: int,
        commit: bool = True,
    ) -> None:
        """Log a summary of a deactivation sweep."""
        self.repo.create(
            resource_type="promotion_code",
            resource_id=None,
            action="swept",
            changes={
                "expired_codes_deactivated": expired_count,
                "exhausted_codes_deactivated": exhausted_count,
            },
            actor_type="system",
            commit=commit,
        )
