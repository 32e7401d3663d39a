"""Fees router: bulk/individual assignment, listing, term summary, reconciliation."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.deps import get_changed_by
from schoolfees.core.enums import AcademicTerm
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import (
    AffectedStudentsResponse,
    AssignFeesRequest,
    AssignmentPreview,
    AssignmentPreviewRequest,
    BulkAssignResult,
    IndividualAssignFeesRequest,
    IndividualAssignResult,
    PaymentSummary,
    ReconcileRequest,
    ReconcileResult,
    StudentFeeAssignmentResponse,
)
from . import reconciliation, service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


# --- Assignment ---
@router.post("/assign/bulk", response_model=BulkAssignResult)
async def bulk_assign_fees(
    payload: AssignFeesRequest,
    db: AsyncSession = Depends(get_db),
    changed_by: Optional[str] = Depends(get_changed_by),
) -> BulkAssignResult:
    try:
        return await service.bulk_assign_fees(db, payload, changed_by=changed_by)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/assign/preview", response_model=AssignmentPreview)
async def preview_individual_assignment(
    payload: AssignmentPreviewRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignmentPreview:
    return await service.preview_individual_assignment(db, payload)


@router.post("/assign/individual", response_model=IndividualAssignResult)
async def assign_individual_fees(
    payload: IndividualAssignFeesRequest,
    db: AsyncSession = Depends(get_db),
    changed_by: Optional[str] = Depends(get_changed_by),
) -> IndividualAssignResult:
    try:
        return await service.assign_individual_fees(db, payload, changed_by=changed_by)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/assignments", response_model=List[StudentFeeAssignmentResponse])
async def list_assignments(
    class_id: str,
    academic_year: str,
    term: AcademicTerm,
    db: AsyncSession = Depends(get_db),
) -> List[StudentFeeAssignmentResponse]:
    return await service.list_assignments(db, class_id, academic_year, term)


# --- Report ---
@router.get("/summary", response_model=PaymentSummary)
async def get_payment_summary(
    academic_year: str,
    term: AcademicTerm = Query(..., description="first, second, third"),
    db: AsyncSession = Depends(get_db),
) -> PaymentSummary:
    return await service.get_payment_summary(db, academic_year, term)


# --- Reconciliation ---
@router.get("/structures/{structure_id}/affected", response_model=AffectedStudentsResponse)
async def get_affected_students(
    structure_id: str,
    db: AsyncSession = Depends(get_db),
) -> AffectedStudentsResponse:
    try:
        return await reconciliation.get_affected_students(db, structure_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/structures/{structure_id}/reconcile",
    response_model=ReconcileResult,
    status_code=status.HTTP_200_OK,
)
async def reconcile_student_assignments(
    structure_id: str,
    payload: ReconcileRequest,
    db: AsyncSession = Depends(get_db),
    changed_by: Optional[str] = Depends(get_changed_by),
) -> ReconcileResult:
    try:
        return await reconciliation.update_student_assignments(
            db, structure_id, payload, changed_by=changed_by
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
