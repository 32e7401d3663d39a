"""Scholarship catalog: create (validated), lookup, active and applicable listings."""

from datetime import date
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.enums import ScholarshipApplicability, ScholarshipStatus
from schoolfees.core.models import Scholarship

from .schemas import ScholarshipCreate, ScholarshipResponse


def _scholarship_to_response(s: Scholarship) -> ScholarshipResponse:
    return ScholarshipResponse.model_validate(s)


def _enum_values(values) -> Optional[list]:
    if values is None:
        return None
    return [getattr(v, "value", v) for v in values]


def inactive_reason(s: ScholarshipResponse, today: date) -> Optional[str]:
    if s.status != ScholarshipStatus.active:
        return f"Scholarship '{s.name}' is {s.status.value}"
    if s.start_date > today or (s.end_date is not None and s.end_date < today):
        return f"Scholarship '{s.name}' is outside its validity period"
    if s.max_beneficiaries and s.current_beneficiaries >= s.max_beneficiaries:
        return f"Scholarship '{s.name}' has reached its beneficiary limit"
    return None


def scholarship_rejection(
    s: ScholarshipResponse,
    student_id: str,
    class_id: str,
    academic_year: str,
    term,
    today: Optional[date] = None,
) -> Optional[str]:
    """Reason the scholarship cannot be granted to this student for this term, or None."""
    reason = inactive_reason(s, today or date.today())
    if reason:
        return reason
    term = getattr(term, "value", term)
    if s.academic_year and s.academic_year != academic_year:
        return f"Scholarship '{s.name}' does not cover academic year {academic_year}"
    if s.terms and term not in {t.value for t in s.terms}:
        return f"Scholarship '{s.name}' does not cover the {term} term"
    if s.applicable_to == ScholarshipApplicability.specific_students:
        if student_id not in (s.student_ids or []):
            return f"Scholarship '{s.name}' does not apply to this student"
    elif s.applicable_to == ScholarshipApplicability.specific_classes:
        if class_id not in (s.class_ids or []):
            return f"Scholarship '{s.name}' does not apply to this class"
    return None


async def create_scholarship(
    db: AsyncSession,
    payload: ScholarshipCreate,
    created_by: Optional[str] = None,
) -> ScholarshipResponse:
    s = Scholarship(
        name=payload.name.strip(),
        description=(payload.description or "").strip() or None,
        scholarship_type=payload.scholarship_type.value,
        percentage_off=payload.percentage_off,
        fixed_amount_off=payload.fixed_amount_off,
        max_discount_per_student=payload.max_discount_per_student,
        applicable_to=payload.applicable_to.value,
        class_ids=payload.class_ids,
        student_ids=payload.student_ids,
        applicable_to_fee_types=_enum_values(payload.applicable_to_fee_types),
        excluded_fee_types=_enum_values(payload.excluded_fee_types),
        start_date=payload.start_date,
        end_date=payload.end_date,
        academic_year=payload.academic_year,
        terms=_enum_values(payload.terms),
        max_beneficiaries=payload.max_beneficiaries,
        current_beneficiaries=payload.current_beneficiaries,
        status=payload.status.value,
        created_by=created_by,
    )
    db.add(s)
    await db.commit()
    await db.refresh(s)
    return _scholarship_to_response(s)


async def increment_beneficiaries(db: AsyncSession, scholarship_id: str) -> None:
    """Count one more beneficiary. Does not commit: runs inside the caller's assignment write."""
    await db.execute(
        update(Scholarship)
        .where(Scholarship.id == scholarship_id)
        .values(current_beneficiaries=Scholarship.current_beneficiaries + 1)
        .execution_options(synchronize_session="fetch")
    )


async def get_scholarship_by_id(db: AsyncSession, scholarship_id: str) -> Optional[ScholarshipResponse]:
    s = await db.get(Scholarship, scholarship_id)
    return _scholarship_to_response(s) if s else None


async def get_active_scholarships(db: AsyncSession, today: Optional[date] = None) -> List[ScholarshipResponse]:
    """Status active, inside the validity window and below the beneficiary cap."""
    today = today or date.today()
    result = await db.execute(
        select(Scholarship)
        .where(Scholarship.status == ScholarshipStatus.active.value)
        .order_by(Scholarship.name)
    )
    scholarships = [_scholarship_to_response(s) for s in result.scalars().all()]
    return [s for s in scholarships if inactive_reason(s, today) is None]


async def get_applicable_scholarships(
    db: AsyncSession,
    student_id: str,
    class_id: str,
    academic_year: str,
    term,
    today: Optional[date] = None,
) -> List[ScholarshipResponse]:
    today = today or date.today()
    return [
        s
        for s in await get_active_scholarships(db, today)
        if scholarship_rejection(s, student_id, class_id, academic_year, term, today) is None
    ]
