"""Student fee assignment: billing record for one student per class, academic year and term."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Column, Date, DateTime, Numeric, String, UniqueConstraint

from schoolfees.core.enums import StudentFeeStatus
from schoolfees.db.session import Base


class StudentFeeAssignment(Base):
    """
    Snapshot of the fees billed to a student for a term.
    Reconciliation may rewrite fee_items and the amounts derived from them;
    amount_paid is owned by payment recording and is never touched here.
    """

    __tablename__ = "student_fee_assignments"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "class_id",
            "academic_year",
            "term",
            name="uq_student_fee_assignment_student_class_year_term",
        ),
        CheckConstraint(
            "status IN ('unpaid','partial','paid','overpaid')",
            name="chk_student_fee_assignment_status",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = Column(String(36), nullable=False, index=True)
    student_name = Column(String(200), nullable=True)
    class_id = Column(String(36), nullable=False)
    class_name = Column(String(100), nullable=True)
    fee_structure_id = Column(String(36), nullable=False, index=True)
    academic_year = Column(String(20), nullable=False)
    term = Column(String(10), nullable=False)

    # [{category_id, category_name, fee_type, amount, amount_paid, balance, is_mandatory, is_optional, is_selected}]
    fee_items = Column(JSON, nullable=False, default=list)

    scholarship_id = Column(String(36), nullable=True)
    scholarship_name = Column(String(150), nullable=True)
    original_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=StudentFeeStatus.unpaid.value)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
