"""Fee structure: ordered fee items for one class, academic year and term."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Numeric, String

from schoolfees.db.session import Base


class FeeStructure(Base):
    """
    fee_items is an ordered JSON list of
    {category_id, category_name, fee_type, amount, is_mandatory, is_optional}.
    total_amount sums every item (mandatory + optional) and is for display only.
    """

    __tablename__ = "fee_structures"
    __table_args__ = (
        CheckConstraint("term IN ('first','second','third')", name="chk_fee_structure_term"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id = Column(String(36), nullable=False, index=True)
    class_name = Column(String(100), nullable=True)
    academic_year = Column(String(20), nullable=False)  # e.g. "2025/2026"
    term = Column(String(10), nullable=False)
    fee_items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
