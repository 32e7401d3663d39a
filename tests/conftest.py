import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolfees.api.v1.fee_structures import service as catalog_service
from schoolfees.api.v1.fee_structures.schemas import FeeItem, FeeStructureCreate, FeeStructureResponse
from schoolfees.api.v1.scholarships import service as scholarship_service
from schoolfees.api.v1.scholarships.schemas import ScholarshipCreate, ScholarshipResponse
from schoolfees.api.v1.students import service as student_service
from schoolfees.api.v1.students.schemas import StudentCreate, StudentProfileResponse
from schoolfees.core.enums import AcademicTerm, FeeType, ScholarshipType
from schoolfees.db.session import Base, get_db
from schoolfees.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CLASS_ID = "class-jss1"
ACADEMIC_YEAR = "2025/2026"
TERM = AcademicTerm.first


def tuition_and_feeding(tuition: str = "20000", feeding: str = "5000") -> List[FeeItem]:
    """Tuition mandatory, Feeding optional."""
    return [
        FeeItem(
            category_id="cat-tuition",
            category_name="Tuition",
            fee_type=FeeType.tuition,
            amount=Decimal(tuition),
            is_mandatory=True,
        ),
        FeeItem(
            category_id="cat-feeding",
            category_name="Feeding",
            fee_type=FeeType.feeding,
            amount=Decimal(feeding),
            is_mandatory=False,
        ),
    ]


def scholarship_snapshot(**overrides) -> ScholarshipResponse:
    data = {
        "id": "sch-1",
        "name": "Merit",
        "scholarship_type": ScholarshipType.percentage,
        "percentage_off": Decimal("10"),
        "start_date": date(2020, 1, 1),
    }
    data.update(overrides)
    return ScholarshipResponse(**data)


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; also overrides the FastAPI dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class Seeder:
    """Writes catalog and roster rows through the real services."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def structure(
        self,
        fee_items: Optional[List[FeeItem]] = None,
        class_id: str = CLASS_ID,
        academic_year: str = ACADEMIC_YEAR,
        term: AcademicTerm = TERM,
    ) -> FeeStructureResponse:
        return await catalog_service.create_fee_structure(
            self.db,
            FeeStructureCreate(
                class_id=class_id,
                class_name="JSS 1",
                academic_year=academic_year,
                term=term,
                fee_items=fee_items if fee_items is not None else tuition_and_feeding(),
            ),
        )

    async def students(self, count: int, class_id: str = CLASS_ID) -> List[StudentProfileResponse]:
        out = []
        for n in range(count):
            out.append(
                await student_service.create_student(
                    self.db,
                    StudentCreate(
                        first_name=f"Student{n:02d}",
                        surname="Okafor",
                        class_id=class_id,
                        class_name="JSS 1",
                    ),
                )
            )
        return out

    async def scholarship(self, **overrides) -> ScholarshipResponse:
        data: Dict = {
            "name": "Merit",
            "scholarship_type": ScholarshipType.percentage,
            "percentage_off": Decimal("10"),
            "start_date": date(2020, 1, 1),
        }
        data.update(overrides)
        return await scholarship_service.create_scholarship(self.db, ScholarshipCreate(**data))


@pytest.fixture()
def seed(db_session: AsyncSession) -> Seeder:
    return Seeder(db_session)
