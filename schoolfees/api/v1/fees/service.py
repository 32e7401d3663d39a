"""Fees service: bulk and individual assignment, assignment listing, term summary."""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fee_structures.schemas import FeeStructureResponse
from schoolfees.api.v1.scholarships.schemas import ScholarshipResponse
from schoolfees.api.v1.scholarships.service import scholarship_rejection
from schoolfees.api.v1.students.schemas import StudentProfileResponse
from schoolfees.core.config import settings
from schoolfees.core.enums import StudentFeeStatus
from schoolfees.core.exceptions import NotFoundError, ServiceError, ValidationFailure

from .builder import build_assignment, resolve_optional_selection, validate_optional_selection
from .calculator import ItemFilter, item_filter_for_policy
from .duplicate_guard import find_existing_student_ids, partition_candidates, unique_candidates
from .gateway import FeeGateway
from .schemas import (
    AssignFeesRequest,
    AssignmentCandidate,
    AssignmentError,
    AssignmentPreview,
    AssignmentPreviewRequest,
    BulkAssignResult,
    IndividualAssignFeesRequest,
    IndividualAssignResult,
    PaymentSummary,
    StudentFeeAssignmentCreate,
    StudentFeeAssignmentResponse,
)

logger = logging.getLogger(__name__)


def default_item_filter() -> ItemFilter:
    return item_filter_for_policy(settings.fee_type_filter_policy)


class _BatchContext:
    """Everything resolved once, up front, for one assignment batch."""

    def __init__(
        self,
        payload: AssignFeesRequest,
        structure: Optional[FeeStructureResponse],
        roster: Dict[str, StudentProfileResponse],
        scholarship: Optional[ScholarshipResponse],
        item_filter: ItemFilter,
    ) -> None:
        self.payload = payload
        self.structure = structure
        self.roster = roster
        self.scholarship = scholarship
        self.item_filter = item_filter

    def build(self, student_id: str) -> StudentFeeAssignmentCreate:
        """Raises NotFoundError / ValidationFailure for this student only."""
        p = self.payload
        student = self.roster.get(student_id)
        if student is None:
            raise NotFoundError("Student not found or not active in this class")
        if self.structure is None:
            raise NotFoundError(
                f"No active fee structure for class {p.class_id}, {p.academic_year} {p.term.value} term"
            )
        if p.scholarship_id and self.scholarship is None:
            raise NotFoundError("Scholarship not found")
        if self.scholarship is not None:
            reason = scholarship_rejection(
                self.scholarship, student_id, p.class_id, p.academic_year, p.term
            )
            if reason:
                raise ValidationFailure(reason)
        selected = resolve_optional_selection(
            student_id, p.student_optional_fees, p.shared_optional_fees
        )
        return build_assignment(
            student,
            self.structure,
            selected,
            scholarship=self.scholarship,
            due_date=p.due_date,
            item_filter=self.item_filter,
        )

    def record_beneficiary(self) -> None:
        """Mirror the gateway's beneficiary increment so the cap is re-checked for the next student."""
        if self.scholarship is not None:
            self.scholarship = self.scholarship.model_copy(
                update={"current_beneficiaries": self.scholarship.current_beneficiaries + 1}
            )


def _require_candidates(payload: AssignFeesRequest) -> None:
    if not payload.class_id:
        raise ValidationFailure("A class must be selected")
    if not payload.student_ids:
        raise ValidationFailure("Select at least one student")


async def _prepare_batch(
    gateway: FeeGateway,
    payload: AssignFeesRequest,
    item_filter: Optional[ItemFilter],
) -> _BatchContext:
    structure = await gateway.get_structure_by_class_and_term(
        payload.class_id, payload.academic_year, payload.term
    )
    if structure is not None:
        if not structure.fee_items:
            raise ValidationFailure("Fee structure has no fee items")
        selections = list(payload.shared_optional_fees or [])
        for ids in (payload.student_optional_fees or {}).values():
            selections.extend(ids or [])
        validate_optional_selection(structure, selections)

    roster = {s.id: s for s in await gateway.list_active_students_by_class(payload.class_id)}
    scholarship = None
    if payload.scholarship_id:
        scholarship = await gateway.get_scholarship_by_id(payload.scholarship_id)
    return _BatchContext(payload, structure, roster, scholarship, item_filter or default_item_filter())


async def _assign_each(
    gateway: FeeGateway,
    ctx: _BatchContext,
    student_ids: List[str],
    result: BulkAssignResult,
    changed_by: Optional[str],
) -> None:
    """Sequential; a failure is recorded against its student and the batch moves on."""
    for student_id in student_ids:
        student = ctx.roster.get(student_id)
        try:
            record = ctx.build(student_id)
            created = await gateway.create_assignment(record, changed_by=changed_by)
        except ServiceError as e:
            logger.warning("Fee assignment failed for student %s: %s", student_id, e.message)
            result.errors.append(
                AssignmentError(
                    student_id=student_id,
                    student_name=student.full_name if student else None,
                    error=e.message,
                )
            )
            continue
        if created.scholarship_id:
            ctx.record_beneficiary()
        result.success_count += 1
        result.created_assignment_ids.append(created.id)


async def bulk_assign_fees(
    db: AsyncSession,
    payload: AssignFeesRequest,
    changed_by: Optional[str] = None,
    item_filter: Optional[ItemFilter] = None,
) -> BulkAssignResult:
    """
    Assign the class/term fee structure to many students.

    Students who already hold an assignment for the term are left untouched and
    counted in duplicate_count. Never fails as a whole once started:
    success_count + duplicate_count + len(errors) == number of distinct candidates.
    """
    _require_candidates(payload)
    gateway = FeeGateway(db)
    candidates = unique_candidates(payload.student_ids)
    existing = await find_existing_student_ids(
        gateway, payload.class_id, payload.academic_year, payload.term, candidates
    )
    fresh, duplicates = partition_candidates(candidates, existing)
    ctx = await _prepare_batch(gateway, payload, item_filter)

    result = BulkAssignResult(duplicate_count=len(duplicates))
    await _assign_each(gateway, ctx, fresh, result, changed_by)
    logger.info(
        "Bulk fee assignment for class %s %s/%s: %d assigned, %d already assigned, %d failed",
        payload.class_id, payload.academic_year, payload.term.value,
        result.success_count, result.duplicate_count, len(result.errors),
    )
    return result


async def preview_individual_assignment(
    db: AsyncSession,
    payload: AssignmentPreviewRequest,
) -> AssignmentPreview:
    """Active students of the class, flagged when they already hold an assignment for the term."""
    gateway = FeeGateway(db)
    roster = await gateway.list_active_students_by_class(payload.class_id)
    if payload.student_ids is not None:
        wanted = set(payload.student_ids)
        roster = [s for s in roster if s.id in wanted]
    existing = await find_existing_student_ids(
        gateway, payload.class_id, payload.academic_year, payload.term
    )
    structure = await gateway.get_structure_by_class_and_term(
        payload.class_id, payload.academic_year, payload.term
    )
    candidates = [
        AssignmentCandidate(student_id=s.id, student_name=s.full_name, already_assigned=s.id in existing)
        for s in roster
    ]
    existing_ids = [c.student_id for c in candidates if c.already_assigned]
    return AssignmentPreview(
        fee_structure_id=structure.id if structure else None,
        candidates=candidates,
        existing_student_ids=existing_ids,
        duplicate_count=len(existing_ids),
    )


async def assign_individual_fees(
    db: AsyncSession,
    payload: IndividualAssignFeesRequest,
    changed_by: Optional[str] = None,
    item_filter: Optional[ItemFilter] = None,
) -> IndividualAssignResult:
    """
    Assign to hand-picked students. If any already hold an assignment and the caller
    has not set proceed_with_remaining, nothing is written and the conflict is
    returned as data.
    """
    _require_candidates(payload)
    gateway = FeeGateway(db)
    candidates = unique_candidates(payload.student_ids)
    existing = await find_existing_student_ids(
        gateway, payload.class_id, payload.academic_year, payload.term, candidates
    )
    fresh, duplicates = partition_candidates(candidates, existing)
    if duplicates and not payload.proceed_with_remaining:
        return IndividualAssignResult(
            duplicate_count=len(duplicates),
            existing_student_ids=duplicates,
            proceeded=False,
        )

    ctx = await _prepare_batch(gateway, payload, item_filter)
    result = IndividualAssignResult(duplicate_count=len(duplicates), existing_student_ids=duplicates)
    await _assign_each(gateway, ctx, fresh, result, changed_by)
    logger.info(
        "Individual fee assignment for class %s %s/%s: %d assigned, %d skipped, %d failed",
        payload.class_id, payload.academic_year, payload.term.value,
        result.success_count, result.duplicate_count, len(result.errors),
    )
    return result


async def list_assignments(
    db: AsyncSession, class_id: str, academic_year: str, term
) -> List[StudentFeeAssignmentResponse]:
    return await FeeGateway(db).list_assignments_by_class_and_term(class_id, academic_year, term)


async def get_payment_summary(db: AsyncSession, academic_year: str, term) -> PaymentSummary:
    assignments = await FeeGateway(db).list_assignments_by_term(academic_year, term)
    counts = {s: 0 for s in StudentFeeStatus}
    for a in assignments:
        counts[a.status] += 1
    return PaymentSummary(
        academic_year=academic_year,
        term=term,
        total_assigned=sum((a.total_amount for a in assignments), Decimal("0")),
        total_paid=sum((a.amount_paid for a in assignments), Decimal("0")),
        total_balance=sum((a.balance for a in assignments), Decimal("0")),
        paid_count=counts[StudentFeeStatus.paid],
        partial_count=counts[StudentFeeStatus.partial],
        unpaid_count=counts[StudentFeeStatus.unpaid],
        overpaid_count=counts[StudentFeeStatus.overpaid],
        total_students=len(assignments),
    )
