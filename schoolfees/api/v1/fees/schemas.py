"""Fees schemas: student fee assignments, bulk/individual requests, reconciliation."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from schoolfees.core.enums import AcademicTerm, FeeType, StudentFeeStatus


# --- Discount ---
class DiscountBreakdown(BaseModel):
    original_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


# --- Student Fee Assignment ---
class StudentFeeItem(BaseModel):
    category_id: str
    category_name: str
    fee_type: FeeType = FeeType.other
    amount: Decimal
    amount_paid: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    is_mandatory: bool
    is_optional: bool
    is_selected: bool


class StudentFeeAssignmentCreate(BaseModel):
    """Built by the assignment builder, persisted by the gateway."""

    student_id: str
    student_name: Optional[str] = None
    class_id: str
    class_name: Optional[str] = None
    fee_structure_id: str
    academic_year: str
    term: AcademicTerm
    fee_items: List[StudentFeeItem]
    scholarship_id: Optional[str] = None
    scholarship_name: Optional[str] = None
    original_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal = Decimal("0")
    balance: Decimal
    status: StudentFeeStatus
    due_date: Optional[date] = None


class StudentFeeAssignmentUpdate(BaseModel):
    """Fields reconciliation is allowed to rewrite. amount_paid is not among them."""

    fee_items: List[StudentFeeItem]
    original_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    balance: Decimal
    status: StudentFeeStatus


class StudentFeeAssignmentResponse(StudentFeeAssignmentCreate):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Assignment requests ---
class AssignmentContext(BaseModel):
    class_id: str = Field(..., min_length=1)
    academic_year: str = Field(..., min_length=1)
    term: AcademicTerm


class AssignFeesRequest(AssignmentContext):
    student_ids: List[str] = Field(default_factory=list)
    scholarship_id: Optional[str] = None
    # Per-student optional category ids; a student absent here falls back to shared_optional_fees
    student_optional_fees: Optional[Dict[str, List[str]]] = None
    shared_optional_fees: Optional[List[str]] = None
    due_date: Optional[date] = None


class IndividualAssignFeesRequest(AssignFeesRequest):
    proceed_with_remaining: bool = False


class AssignmentPreviewRequest(AssignmentContext):
    student_ids: Optional[List[str]] = None


class AssignmentError(BaseModel):
    student_id: str
    student_name: Optional[str] = None
    error: str


class BulkAssignResult(BaseModel):
    success_count: int = 0
    duplicate_count: int = 0
    errors: List[AssignmentError] = Field(default_factory=list)
    created_assignment_ids: List[str] = Field(default_factory=list)


class IndividualAssignResult(BulkAssignResult):
    existing_student_ids: List[str] = Field(default_factory=list)
    proceeded: bool = True


class AssignmentCandidate(BaseModel):
    student_id: str
    student_name: str
    already_assigned: bool


class AssignmentPreview(BaseModel):
    fee_structure_id: Optional[str] = None
    candidates: List[AssignmentCandidate]
    existing_student_ids: List[str]
    duplicate_count: int


# --- Reconciliation ---
class AffectedStudent(BaseModel):
    assignment_id: str
    student_id: str
    student_name: Optional[str] = None
    current_total: Decimal
    new_total: Decimal
    difference: Decimal
    has_paid: bool
    amount_paid: Decimal
    error: Optional[str] = None


class AffectedStudentsResponse(BaseModel):
    fee_structure_id: str
    students: List[AffectedStudent]
    default_selection: List[str]


class ReconcileRequest(BaseModel):
    # None means the default selection: every affected student who has not paid
    student_ids: Optional[List[str]] = None
    include_paid_students: bool = False


class ReconcileResult(BaseModel):
    updated: int = 0
    skipped: int = 0
    errors: List[AssignmentError] = Field(default_factory=list)


# --- Report ---
class PaymentSummary(BaseModel):
    academic_year: str
    term: AcademicTerm
    total_assigned: Decimal
    total_paid: Decimal
    total_balance: Decimal
    paid_count: int
    partial_count: int
    unpaid_count: int
    overpaid_count: int
    total_students: int
