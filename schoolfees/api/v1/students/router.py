from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.db.session import get_db

from .schemas import StudentCreate, StudentProfileResponse
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post("", response_model=StudentProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
) -> StudentProfileResponse:
    return await service.create_student(db, payload)


@router.get("/by-class/{class_id}", response_model=List[StudentProfileResponse])
async def list_active_students_by_class(
    class_id: str,
    db: AsyncSession = Depends(get_db),
) -> List[StudentProfileResponse]:
    return await service.list_active_students_by_class(db, class_id)
