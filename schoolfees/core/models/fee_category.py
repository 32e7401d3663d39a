"""Fee category master (Tuition, Feeding, Transport...). Soft delete via is_active."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String, Text

from schoolfees.db.session import Base


class FeeCategory(Base):
    """
    Chargeable category. Fee structures copy name and fee_type into their items,
    so later edits to a category never reach existing structures.
    """

    __tablename__ = "fee_categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    fee_type = Column(String(30), nullable=False)  # FeeType value
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
