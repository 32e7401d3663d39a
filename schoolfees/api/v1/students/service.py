from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.models import StudentProfile

from .schemas import StudentCreate, StudentProfileResponse


def _student_to_response(s: StudentProfile) -> StudentProfileResponse:
    return StudentProfileResponse.model_validate(s)


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentProfileResponse:
    s = StudentProfile(
        first_name=payload.first_name.strip(),
        surname=payload.surname.strip(),
        class_id=payload.class_id,
        class_name=payload.class_name,
        is_active=True,
    )
    db.add(s)
    await db.commit()
    await db.refresh(s)
    return _student_to_response(s)


async def get_student(db: AsyncSession, student_id: str) -> Optional[StudentProfileResponse]:
    s = await db.get(StudentProfile, student_id)
    return _student_to_response(s) if s else None


async def list_active_students_by_class(db: AsyncSession, class_id: str) -> List[StudentProfileResponse]:
    result = await db.execute(
        select(StudentProfile)
        .where(StudentProfile.class_id == class_id, StudentProfile.is_active.is_(True))
        .order_by(StudentProfile.surname, StudentProfile.first_name)
    )
    return [_student_to_response(s) for s in result.scalars().all()]
