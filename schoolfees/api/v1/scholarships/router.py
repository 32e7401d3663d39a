from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.deps import get_changed_by
from schoolfees.core.enums import AcademicTerm
from schoolfees.db.session import get_db

from .schemas import ScholarshipCreate, ScholarshipResponse
from . import service

router = APIRouter(prefix="/api/v1/scholarships", tags=["scholarships"])


@router.post("", response_model=ScholarshipResponse, status_code=status.HTTP_201_CREATED)
async def create_scholarship(
    payload: ScholarshipCreate,
    db: AsyncSession = Depends(get_db),
    changed_by: Optional[str] = Depends(get_changed_by),
) -> ScholarshipResponse:
    return await service.create_scholarship(db, payload, created_by=changed_by)


@router.get("/active", response_model=List[ScholarshipResponse])
async def list_active_scholarships(db: AsyncSession = Depends(get_db)) -> List[ScholarshipResponse]:
    return await service.get_active_scholarships(db)


@router.get("/applicable", response_model=List[ScholarshipResponse])
async def list_applicable_scholarships(
    student_id: str,
    class_id: str,
    academic_year: str,
    term: AcademicTerm,
    db: AsyncSession = Depends(get_db),
) -> List[ScholarshipResponse]:
    return await service.get_applicable_scholarships(db, student_id, class_id, academic_year, term)


@router.get("/{scholarship_id}", response_model=ScholarshipResponse)
async def get_scholarship(scholarship_id: str, db: AsyncSession = Depends(get_db)) -> ScholarshipResponse:
    scholarship = await service.get_scholarship_by_id(db, scholarship_id)
    if not scholarship:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scholarship not found")
    return scholarship
