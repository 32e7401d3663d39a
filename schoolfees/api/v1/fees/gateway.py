"""
Persistence gateway for the fee engine.

Reads come back as pydantic snapshots (None when a record is missing); writes take
builder output and commit one record at a time so a later failure in a batch never
rolls back an earlier success.
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fee_structures import service as catalog
from schoolfees.api.v1.fee_structures.schemas import FeeCategoryResponse, FeeStructureResponse
from schoolfees.api.v1.scholarships import service as scholarships
from schoolfees.api.v1.scholarships.schemas import ScholarshipResponse
from schoolfees.api.v1.students import service as students
from schoolfees.api.v1.students.schemas import StudentProfileResponse
from schoolfees.core.exceptions import NotFoundError, PersistenceFailure
from schoolfees.core.models import FeeAuditLog, StudentFeeAssignment

from .schemas import (
    StudentFeeAssignmentCreate,
    StudentFeeAssignmentResponse,
    StudentFeeAssignmentUpdate,
)

logger = logging.getLogger(__name__)

AUDITED_FIELDS = ("original_amount", "discount_amount", "total_amount", "amount_paid", "balance", "status")


def _sfa_to_response(sfa: StudentFeeAssignment) -> StudentFeeAssignmentResponse:
    return StudentFeeAssignmentResponse.model_validate(sfa)


def _audit_values(sfa: StudentFeeAssignment) -> dict:
    return {f: str(getattr(sfa, f)) for f in AUDITED_FIELDS}


def _term_value(term) -> str:
    return getattr(term, "value", term)


class FeeGateway:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # --- Fee catalog ---
    async def get_structure_by_class_and_term(
        self, class_id: str, academic_year: str, term
    ) -> Optional[FeeStructureResponse]:
        return await catalog.get_structure_by_class_and_term(self.db, class_id, academic_year, term)

    async def get_structure_by_id(self, structure_id: str) -> Optional[FeeStructureResponse]:
        return await catalog.get_structure_by_id(self.db, structure_id)

    async def get_categories_active(self) -> List[FeeCategoryResponse]:
        return await catalog.list_fee_categories(self.db, active_only=True)

    # --- Scholarships ---
    async def get_scholarship_by_id(self, scholarship_id: str) -> Optional[ScholarshipResponse]:
        return await scholarships.get_scholarship_by_id(self.db, scholarship_id)

    async def get_active_scholarships(self, today: Optional[date] = None) -> List[ScholarshipResponse]:
        return await scholarships.get_active_scholarships(self.db, today)

    # --- Students ---
    async def list_active_students_by_class(self, class_id: str) -> List[StudentProfileResponse]:
        return await students.list_active_students_by_class(self.db, class_id)

    # --- Assignments ---
    async def list_assignments_by_class_and_term(
        self, class_id: str, academic_year: str, term
    ) -> List[StudentFeeAssignmentResponse]:
        result = await self.db.execute(
            select(StudentFeeAssignment)
            .where(
                StudentFeeAssignment.class_id == class_id,
                StudentFeeAssignment.academic_year == academic_year,
                StudentFeeAssignment.term == _term_value(term),
            )
            .order_by(StudentFeeAssignment.student_name, StudentFeeAssignment.created_at)
        )
        return [_sfa_to_response(a) for a in result.scalars().all()]

    async def list_assignments_by_structure(self, structure_id: str) -> List[StudentFeeAssignmentResponse]:
        """Assignments billed from this structure; a replacement structure's bills are not included."""
        result = await self.db.execute(
            select(StudentFeeAssignment)
            .where(StudentFeeAssignment.fee_structure_id == structure_id)
            .order_by(StudentFeeAssignment.student_name, StudentFeeAssignment.created_at)
        )
        return [_sfa_to_response(a) for a in result.scalars().all()]

    async def list_assignments_by_term(self, academic_year: str, term) -> List[StudentFeeAssignmentResponse]:
        result = await self.db.execute(
            select(StudentFeeAssignment).where(
                StudentFeeAssignment.academic_year == academic_year,
                StudentFeeAssignment.term == _term_value(term),
            )
        )
        return [_sfa_to_response(a) for a in result.scalars().all()]

    async def create_assignment(
        self, record: StudentFeeAssignmentCreate, changed_by: Optional[str] = None
    ) -> StudentFeeAssignmentResponse:
        data = record.model_dump(mode="json")
        sfa = StudentFeeAssignment(
            **{k: v for k, v in data.items() if k not in AUDITED_FIELDS and k != "due_date"},
            original_amount=record.original_amount,
            discount_amount=record.discount_amount,
            total_amount=record.total_amount,
            amount_paid=record.amount_paid,
            balance=record.balance,
            status=record.status.value,
            due_date=record.due_date,
        )
        try:
            self.db.add(sfa)
            await self.db.flush()
            if record.scholarship_id:
                await scholarships.increment_beneficiaries(self.db, record.scholarship_id)
            self._log_fee_audit(sfa.id, "CREATE", None, {
                "student_id": record.student_id,
                "fee_structure_id": record.fee_structure_id,
                "scholarship_id": record.scholarship_id,
                **_audit_values(sfa),
            }, changed_by)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("Duplicate assignment rejected for student %s: %s", record.student_id, e.orig)
            raise PersistenceFailure(
                "Student already has a fee assignment for this class and term",
                status.HTTP_409_CONFLICT,
            )
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to persist fee assignment for student %s", record.student_id)
            raise PersistenceFailure("Could not save fee assignment")
        await self.db.refresh(sfa)
        return _sfa_to_response(sfa)

    async def update_assignment(
        self,
        assignment_id: str,
        patch: StudentFeeAssignmentUpdate,
        changed_by: Optional[str] = None,
    ) -> StudentFeeAssignmentResponse:
        sfa = await self.db.get(StudentFeeAssignment, assignment_id)
        if not sfa:
            raise NotFoundError("Student fee assignment not found")
        old = _audit_values(sfa)
        try:
            sfa.fee_items = [i.model_dump(mode="json") for i in patch.fee_items]
            sfa.original_amount = patch.original_amount
            sfa.discount_amount = patch.discount_amount
            sfa.total_amount = patch.total_amount
            sfa.balance = patch.balance
            sfa.status = patch.status.value
            await self.db.flush()
            self._log_fee_audit(sfa.id, "UPDATE", old, _audit_values(sfa), changed_by)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to update fee assignment %s", assignment_id)
            raise PersistenceFailure("Could not update fee assignment")
        await self.db.refresh(sfa)
        return _sfa_to_response(sfa)

    # --- Audit helper ---
    def _log_fee_audit(
        self,
        reference_id: str,
        action_type: str,
        old_value: Optional[dict],
        new_value: Optional[dict],
        changed_by: Optional[str],
    ) -> None:
        self.db.add(
            FeeAuditLog(
                reference_table="student_fee_assignments",
                reference_id=reference_id,
                action_type=action_type,
                old_value=old_value,
                new_value=new_value,
                changed_by=changed_by,
            )
        )
