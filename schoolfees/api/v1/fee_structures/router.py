"""Fee catalog router: categories and class/term fee structures."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.enums import AcademicTerm
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import (
    FeeCategoryCreate,
    FeeCategoryResponse,
    FeeStructureClone,
    FeeStructureCreate,
    FeeStructureResponse,
    FeeStructureUpdate,
    FeeStructureUpdateResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fee-catalog", tags=["fee-catalog"])


# --- Fee Category ---
@router.post("/categories", response_model=FeeCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_fee_category(
    payload: FeeCategoryCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeCategoryResponse:
    return await service.create_fee_category(db, payload)


@router.get("/categories", response_model=List[FeeCategoryResponse])
async def list_fee_categories(
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
) -> List[FeeCategoryResponse]:
    return await service.list_fee_categories(db, active_only=active_only)


# --- Fee Structure ---
@router.post("/structures", response_model=FeeStructureResponse, status_code=status.HTTP_201_CREATED)
async def create_fee_structure(
    payload: FeeStructureCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.create_fee_structure(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/structures", response_model=List[FeeStructureResponse])
async def list_fee_structures(
    academic_year: str,
    db: AsyncSession = Depends(get_db),
) -> List[FeeStructureResponse]:
    return await service.list_structures_by_academic_year(db, academic_year)


@router.get("/structures/lookup", response_model=FeeStructureResponse)
async def get_structure_by_class_and_term(
    class_id: str,
    academic_year: str,
    term: AcademicTerm,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    structure = await service.get_structure_by_class_and_term(db, class_id, academic_year, term)
    if not structure:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee structure not found")
    return structure


@router.get("/structures/{structure_id}", response_model=FeeStructureResponse)
async def get_fee_structure(
    structure_id: str,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    structure = await service.get_structure_by_id(db, structure_id)
    if not structure:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee structure not found")
    return structure


@router.patch("/structures/{structure_id}", response_model=FeeStructureUpdateResponse)
async def update_fee_structure(
    structure_id: str,
    payload: FeeStructureUpdate,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureUpdateResponse:
    try:
        return await service.update_fee_structure(db, structure_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/structures/{structure_id}/clone",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def clone_fee_structure(
    structure_id: str,
    payload: FeeStructureClone,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.clone_fee_structure(db, structure_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
