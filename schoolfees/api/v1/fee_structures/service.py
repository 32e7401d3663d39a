"""Fee catalog service: categories and fee structures (create, edit, clone, lookup)."""

import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import NotFoundError, ServiceError, ValidationFailure
from schoolfees.core.models import FeeCategory, FeeStructure, StudentFeeAssignment

from .schemas import (
    FeeCategoryCreate,
    FeeCategoryResponse,
    FeeItem,
    FeeStructureClone,
    FeeStructureCreate,
    FeeStructureResponse,
    FeeStructureUpdate,
    FeeStructureUpdateResponse,
)

logger = logging.getLogger(__name__)


def _term_value(term) -> str:
    return getattr(term, "value", term)


# --- Fee Category ---
def _category_to_response(fc: FeeCategory) -> FeeCategoryResponse:
    return FeeCategoryResponse(
        id=fc.id,
        name=fc.name,
        fee_type=fc.fee_type,
        description=fc.description,
        is_active=fc.is_active,
        created_at=fc.created_at,
        updated_at=fc.updated_at,
    )


async def create_fee_category(db: AsyncSession, payload: FeeCategoryCreate) -> FeeCategoryResponse:
    fc = FeeCategory(
        name=payload.name.strip(),
        fee_type=payload.fee_type.value,
        description=(payload.description or "").strip() or None,
        is_active=True,
    )
    db.add(fc)
    await db.commit()
    await db.refresh(fc)
    return _category_to_response(fc)


async def list_fee_categories(db: AsyncSession, active_only: bool = True) -> List[FeeCategoryResponse]:
    stmt = select(FeeCategory)
    if active_only:
        stmt = stmt.where(FeeCategory.is_active.is_(True))
    stmt = stmt.order_by(FeeCategory.name)
    result = await db.execute(stmt)
    return [_category_to_response(c) for c in result.scalars().all()]


# --- Fee Structure ---
def _structure_to_response(fs: FeeStructure) -> FeeStructureResponse:
    return FeeStructureResponse(
        id=fs.id,
        class_id=fs.class_id,
        class_name=fs.class_name,
        academic_year=fs.academic_year,
        term=fs.term,
        fee_items=[FeeItem.model_validate(i) for i in fs.fee_items or []],
        total_amount=Decimal(str(fs.total_amount or 0)),
        is_active=fs.is_active,
        created_at=fs.created_at,
        updated_at=fs.updated_at,
    )


def _validate_items(items: List[FeeItem]) -> None:
    if not items:
        raise ValidationFailure("Fee structure must have at least one fee item")
    seen = set()
    for item in items:
        if item.category_id in seen:
            raise ValidationFailure(f"Fee category {item.category_id} appears more than once")
        seen.add(item.category_id)


def _items_total(items: List[FeeItem]) -> Decimal:
    return sum((i.amount for i in items), Decimal("0"))


def _dump_items(items: List[FeeItem]) -> list:
    return [i.model_dump(mode="json") for i in items]


async def _find_active_structure(
    db: AsyncSession, class_id: str, academic_year: str, term
) -> Optional[FeeStructure]:
    return (
        await db.execute(
            select(FeeStructure).where(
                FeeStructure.class_id == class_id,
                FeeStructure.academic_year == academic_year,
                FeeStructure.term == _term_value(term),
                FeeStructure.is_active.is_(True),
            )
        )
    ).scalars().first()


async def create_fee_structure(db: AsyncSession, payload: FeeStructureCreate) -> FeeStructureResponse:
    _validate_items(payload.fee_items)
    if await _find_active_structure(db, payload.class_id, payload.academic_year, payload.term):
        raise ServiceError(
            "An active fee structure already exists for this class and term",
            status.HTTP_409_CONFLICT,
        )
    fs = FeeStructure(
        class_id=payload.class_id,
        class_name=payload.class_name,
        academic_year=payload.academic_year.strip(),
        term=payload.term.value,
        fee_items=_dump_items(payload.fee_items),
        total_amount=_items_total(payload.fee_items),
        is_active=True,
    )
    db.add(fs)
    await db.commit()
    await db.refresh(fs)
    logger.info("Created fee structure %s for class %s %s/%s", fs.id, fs.class_id, fs.academic_year, fs.term)
    return _structure_to_response(fs)


async def count_assigned_students(db: AsyncSession, structure: FeeStructureResponse) -> int:
    return (
        await db.execute(
            select(func.count(StudentFeeAssignment.id)).where(
                StudentFeeAssignment.class_id == structure.class_id,
                StudentFeeAssignment.academic_year == structure.academic_year,
                StudentFeeAssignment.term == _term_value(structure.term),
            )
        )
    ).scalar() or 0


async def update_fee_structure(
    db: AsyncSession, structure_id: str, payload: FeeStructureUpdate
) -> FeeStructureUpdateResponse:
    """Edit a structure. Existing assignments are left alone until reconciliation runs."""
    fs = await db.get(FeeStructure, structure_id)
    if not fs:
        raise NotFoundError("Fee structure not found")
    if payload.fee_items is not None:
        _validate_items(payload.fee_items)
        fs.fee_items = _dump_items(payload.fee_items)
        fs.total_amount = _items_total(payload.fee_items)
    if payload.class_name is not None:
        fs.class_name = payload.class_name
    if payload.is_active is not None:
        fs.is_active = payload.is_active
    await db.commit()
    await db.refresh(fs)
    response = _structure_to_response(fs)
    assigned = await count_assigned_students(db, response)
    if assigned and payload.fee_items is not None:
        logger.info("Fee structure %s edited with %d students already assigned", fs.id, assigned)
    return FeeStructureUpdateResponse(**response.model_dump(), assigned_student_count=assigned)


async def clone_fee_structure(
    db: AsyncSession, source_id: str, payload: FeeStructureClone
) -> FeeStructureResponse:
    source = await get_structure_by_id(db, source_id)
    if not source:
        raise NotFoundError("Source fee structure not found")
    return await create_fee_structure(
        db,
        FeeStructureCreate(
            class_id=payload.target_class_id,
            class_name=payload.target_class_name or source.class_name,
            academic_year=payload.target_academic_year,
            term=payload.target_term,
            fee_items=source.fee_items,
        ),
    )


async def get_structure_by_id(db: AsyncSession, structure_id: str) -> Optional[FeeStructureResponse]:
    fs = await db.get(FeeStructure, structure_id)
    return _structure_to_response(fs) if fs else None


async def get_structure_by_class_and_term(
    db: AsyncSession, class_id: str, academic_year: str, term
) -> Optional[FeeStructureResponse]:
    fs = await _find_active_structure(db, class_id, academic_year, term)
    return _structure_to_response(fs) if fs else None


async def list_structures_by_academic_year(
    db: AsyncSession, academic_year: str
) -> List[FeeStructureResponse]:
    stmt = (
        select(FeeStructure)
        .where(FeeStructure.academic_year == academic_year, FeeStructure.is_active.is_(True))
        .order_by(FeeStructure.class_name, FeeStructure.term)
    )
    result = await db.execute(stmt)
    return [_structure_to_response(fs) for fs in result.scalars().all()]
