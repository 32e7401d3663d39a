"""Build one student's fee assignment from a structure, optional-fee selection and scholarship."""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from schoolfees.api.v1.fee_structures.schemas import FeeItem, FeeStructureResponse
from schoolfees.api.v1.scholarships.schemas import ScholarshipResponse
from schoolfees.api.v1.students.schemas import StudentProfileResponse
from schoolfees.core.enums import StudentFeeStatus
from schoolfees.core.exceptions import ValidationFailure

from .calculator import ItemFilter, all_items, calculate_discount
from .schemas import DiscountBreakdown, StudentFeeAssignmentCreate, StudentFeeItem


def derive_status(total_amount: Decimal, amount_paid: Decimal) -> StudentFeeStatus:
    balance = total_amount - amount_paid
    if balance < 0:
        return StudentFeeStatus.overpaid
    if balance == 0:
        return StudentFeeStatus.paid
    if amount_paid > 0:
        return StudentFeeStatus.partial
    return StudentFeeStatus.unpaid


def resolve_optional_selection(
    student_id: str,
    student_optional_fees: Optional[Dict[str, Iterable[str]]],
    shared_optional_fees: Optional[Iterable[str]],
) -> Set[str]:
    """Per-student selection wins; otherwise the shared list; otherwise nothing."""
    if student_optional_fees is not None and student_id in student_optional_fees:
        return set(student_optional_fees[student_id] or [])
    if shared_optional_fees is not None:
        return set(shared_optional_fees)
    return set()


def validate_optional_selection(structure: FeeStructureResponse, category_ids: Iterable[str]) -> None:
    optional_ids = {i.category_id for i in structure.optional_items}
    unknown = sorted(set(category_ids) - optional_ids)
    if unknown:
        raise ValidationFailure(
            "Optional fee selection references categories that are not optional items of this "
            f"fee structure: {', '.join(unknown)}"
        )


def select_items(
    structure: FeeStructureResponse, selected_optional: Set[str]
) -> Tuple[List[FeeItem], List[StudentFeeItem]]:
    """Return (billable items, per-student item rows) in structure order."""
    billable: List[FeeItem] = []
    rows: List[StudentFeeItem] = []
    for item in structure.fee_items:
        selected = item.is_mandatory or item.category_id in selected_optional
        if selected:
            billable.append(item)
        amount = item.amount if selected else Decimal("0")
        rows.append(
            StudentFeeItem(
                category_id=item.category_id,
                category_name=item.category_name,
                fee_type=item.fee_type,
                amount=item.amount,
                amount_paid=Decimal("0"),
                balance=amount,
                is_mandatory=item.is_mandatory,
                is_optional=not item.is_mandatory,
                is_selected=selected,
            )
        )
    return billable, rows


def price_items(
    structure: FeeStructureResponse,
    selected_optional: Set[str],
    scholarship: Optional[ScholarshipResponse],
    item_filter: ItemFilter = all_items,
) -> Tuple[List[StudentFeeItem], DiscountBreakdown]:
    billable, rows = select_items(structure, selected_optional)
    return rows, calculate_discount(billable, scholarship, item_filter)


def build_assignment(
    student: StudentProfileResponse,
    structure: FeeStructureResponse,
    selected_optional: Set[str],
    scholarship: Optional[ScholarshipResponse] = None,
    due_date: Optional[date] = None,
    item_filter: ItemFilter = all_items,
) -> StudentFeeAssignmentCreate:
    """New, unpersisted assignment. A zero total is born paid."""
    rows, breakdown = price_items(structure, selected_optional, scholarship, item_filter)
    return StudentFeeAssignmentCreate(
        student_id=student.id,
        student_name=student.full_name,
        class_id=structure.class_id,
        class_name=structure.class_name or student.class_name,
        fee_structure_id=structure.id,
        academic_year=structure.academic_year,
        term=structure.term,
        fee_items=rows,
        scholarship_id=scholarship.id if scholarship else None,
        scholarship_name=scholarship.name if scholarship else None,
        original_amount=breakdown.original_amount,
        discount_amount=breakdown.discount_amount,
        total_amount=breakdown.total_amount,
        amount_paid=Decimal("0"),
        balance=breakdown.total_amount,
        status=derive_status(breakdown.total_amount, Decimal("0")),
        due_date=due_date,
    )
