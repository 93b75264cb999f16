"""AuditLog model for tracking promotion code state changes."""

from sqlalchemy import JSON, Column, DateTime, String, func

from promocodes.core.database import Base
from promocodes.models.shared import UUIDType, generate_uuid


class AuditLog(Base):
    """AuditLog model - records redemptions, deactivations and sweeps."""

    __tablename__ = "audit_logs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(UUIDType, nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    changes = Column(JSON, nullable=False, default=dict)
    actor_type = Column(String(50), nullable=False)
    actor_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
