"""
Reconcile existing assignments after their fee structure is edited.

Each assignment is re-priced against the current structure using the student's
recorded selections and scholarship. Only fee_items, original_amount,
discount_amount, total_amount, balance and status are rewritten; amount_paid
(and the per-item amounts already paid) carry over unchanged.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fee_structures.schemas import FeeStructureResponse
from schoolfees.api.v1.scholarships.schemas import ScholarshipResponse
from schoolfees.core.exceptions import NotFoundError, ServiceError, ValidationFailure

from .builder import derive_status, price_items
from .calculator import ItemFilter
from .gateway import FeeGateway
from .schemas import (
    AffectedStudent,
    AffectedStudentsResponse,
    AssignmentError,
    ReconcileRequest,
    ReconcileResult,
    StudentFeeAssignmentResponse,
    StudentFeeAssignmentUpdate,
    StudentFeeItem,
)
from .service import default_item_filter

logger = logging.getLogger(__name__)


def previously_selected(assignment: StudentFeeAssignmentResponse) -> Set[str]:
    return {i.category_id for i in assignment.fee_items if i.is_selected}


def _carry_item_payments(
    old_items: List[StudentFeeItem], new_items: List[StudentFeeItem]
) -> List[StudentFeeItem]:
    """
    Per-item payments follow their category. A category dropped from the structure
    keeps its row, unselected, while it carries a payment.
    """
    paid = {i.category_id: i.amount_paid for i in old_items}
    out = []
    for item in new_items:
        amount_paid = paid.get(item.category_id, Decimal("0"))
        billed = item.amount if item.is_selected else Decimal("0")
        out.append(item.model_copy(update={"amount_paid": amount_paid, "balance": billed - amount_paid}))

    current = {i.category_id for i in new_items}
    for old in old_items:
        if old.category_id in current or old.amount_paid <= 0:
            continue
        logger.warning(
            "Fee category %s removed from structure but has %s paid; keeping it as an unselected item",
            old.category_id, old.amount_paid,
        )
        out.append(old.model_copy(update={"is_selected": False, "balance": -old.amount_paid}))
    return out


def reprice(
    assignment: StudentFeeAssignmentResponse,
    structure: FeeStructureResponse,
    scholarship: Optional[ScholarshipResponse],
    item_filter: ItemFilter,
) -> StudentFeeAssignmentUpdate:
    rows, breakdown = price_items(structure, previously_selected(assignment), scholarship, item_filter)
    amount_paid = assignment.amount_paid
    return StudentFeeAssignmentUpdate(
        fee_items=_carry_item_payments(assignment.fee_items, rows),
        original_amount=breakdown.original_amount,
        discount_amount=breakdown.discount_amount,
        total_amount=breakdown.total_amount,
        balance=breakdown.total_amount - amount_paid,
        status=derive_status(breakdown.total_amount, amount_paid),
    )


async def _load_structure(gateway: FeeGateway, structure_id: str) -> FeeStructureResponse:
    structure = await gateway.get_structure_by_id(structure_id)
    if not structure:
        raise NotFoundError("Fee structure not found")
    return structure


async def _affected(
    gateway: FeeGateway,
    structure: FeeStructureResponse,
    item_filter: ItemFilter,
) -> List[Tuple[AffectedStudent, Optional[StudentFeeAssignmentUpdate]]]:
    assignments = await gateway.list_assignments_by_structure(structure.id)
    scholarships: Dict[str, Optional[ScholarshipResponse]] = {}
    out = []
    for a in assignments:
        patch = None
        error = None
        scholarship = None
        if a.scholarship_id:
            if a.scholarship_id not in scholarships:
                scholarships[a.scholarship_id] = await gateway.get_scholarship_by_id(a.scholarship_id)
            scholarship = scholarships[a.scholarship_id]
            if scholarship is None:
                error = "Scholarship on this assignment no longer exists"
        if error is None:
            patch = reprice(a, structure, scholarship, item_filter)
        new_total = patch.total_amount if patch else a.total_amount
        out.append(
            (
                AffectedStudent(
                    assignment_id=a.id,
                    student_id=a.student_id,
                    student_name=a.student_name,
                    current_total=a.total_amount,
                    new_total=new_total,
                    difference=new_total - a.total_amount,
                    has_paid=a.amount_paid > 0,
                    amount_paid=a.amount_paid,
                    error=error,
                ),
                patch,
            )
        )
    return out


def default_selection(students: List[AffectedStudent]) -> List[str]:
    """Students who have paid nothing are selected unless the caller says otherwise."""
    return [s.student_id for s in students if not s.has_paid and s.error is None]


async def get_affected_students(
    db: AsyncSession,
    structure_id: str,
    item_filter: Optional[ItemFilter] = None,
) -> AffectedStudentsResponse:
    gateway = FeeGateway(db)
    structure = await _load_structure(gateway, structure_id)
    students = [s for s, _ in await _affected(gateway, structure, item_filter or default_item_filter())]
    return AffectedStudentsResponse(
        fee_structure_id=structure.id,
        students=students,
        default_selection=default_selection(students),
    )


async def update_student_assignments(
    db: AsyncSession,
    structure_id: str,
    payload: ReconcileRequest,
    changed_by: Optional[str] = None,
    item_filter: Optional[ItemFilter] = None,
) -> ReconcileResult:
    """
    Apply the re-priced totals to the selected students.

    Deselected students, and students who have paid while include_paid_students
    is off, are skipped. Per-student failures are collected; the rest still run.
    """
    if payload.student_ids is not None and not payload.student_ids:
        raise ValidationFailure("Select at least one student to update")
    gateway = FeeGateway(db)
    structure = await _load_structure(gateway, structure_id)
    affected = await _affected(gateway, structure, item_filter or default_item_filter())

    if payload.student_ids is None:
        selected = set(default_selection([s for s, _ in affected]))
    else:
        selected = set(payload.student_ids)

    result = ReconcileResult()
    seen = set()
    # TODO: compare each assignment's updated_at with the value read in _affected before
    # writing, so two operators reconciling the same class and term cannot overwrite each other.
    for entry, patch in affected:
        seen.add(entry.student_id)
        if entry.student_id not in selected or (entry.has_paid and not payload.include_paid_students):
            result.skipped += 1
            continue
        if patch is None:
            result.errors.append(
                AssignmentError(student_id=entry.student_id, student_name=entry.student_name, error=entry.error)
            )
            continue
        try:
            await gateway.update_assignment(entry.assignment_id, patch, changed_by=changed_by)
        except ServiceError as e:
            logger.warning("Reconciliation failed for student %s: %s", entry.student_id, e.message)
            result.errors.append(
                AssignmentError(student_id=entry.student_id, student_name=entry.student_name, error=e.message)
            )
            continue
        result.updated += 1

    for student_id in sorted(selected - seen):
        result.errors.append(
            AssignmentError(student_id=student_id, error="No fee assignment billed from this fee structure")
        )

    logger.info(
        "Reconciled fee structure %s: %d updated, %d skipped, %d failed",
        structure.id, result.updated, result.skipped, len(result.errors),
    )
    return result
