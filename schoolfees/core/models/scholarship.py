"""Scholarship: discount rule applied at assignment time. Read-only to the fee engine."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, Integer, Numeric, String, Text

from schoolfees.db.session import Base


class Scholarship(Base):
    __tablename__ = "scholarships"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    scholarship_type = Column(String(20), nullable=False)  # percentage, fixed_amount, full_waiver
    percentage_off = Column(Numeric(5, 2), nullable=True)
    fixed_amount_off = Column(Numeric(12, 2), nullable=True)
    max_discount_per_student = Column(Numeric(12, 2), nullable=True)
    applicable_to = Column(String(30), nullable=False, default="all")  # all, specific_classes, specific_students
    class_ids = Column(JSON, nullable=True)
    student_ids = Column(JSON, nullable=True)
    applicable_to_fee_types = Column(JSON, nullable=True)
    excluded_fee_types = Column(JSON, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    academic_year = Column(String(20), nullable=True)
    terms = Column(JSON, nullable=True)
    max_beneficiaries = Column(Integer, nullable=True)
    current_beneficiaries = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")  # active, suspended, expired
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
