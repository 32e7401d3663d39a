"""Fee audit log: immutable financial change tracking for audit safety."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String

from schoolfees.db.session import Base


class FeeAuditLog(Base):
    """Immutable audit trail for assignment creates and reconciliation updates."""

    __tablename__ = "fee_audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    reference_table = Column(String(50), nullable=False)
    reference_id = Column(String(36), nullable=False, index=True)
    action_type = Column(String(30), nullable=False)  # CREATE, UPDATE
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    changed_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
