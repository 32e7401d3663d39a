from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fee_structures import service as catalog_service
from schoolfees.api.v1.fee_structures.schemas import (
    FeeCategoryCreate,
    FeeStructureClone,
    FeeStructureUpdate,
)
from schoolfees.api.v1.fees.gateway import FeeGateway
from schoolfees.api.v1.scholarships import service as scholarship_service
from schoolfees.api.v1.scholarships.schemas import ScholarshipCreate
from schoolfees.api.v1.students import service as student_service
from schoolfees.core.enums import (
    AcademicTerm,
    FeeType,
    ScholarshipApplicability,
    ScholarshipStatus,
    ScholarshipType,
)
from schoolfees.core.exceptions import NotFoundError, ServiceError, ValidationFailure

from conftest import ACADEMIC_YEAR, CLASS_ID, TERM, tuition_and_feeding


# --- Fee categories ---
async def test_list_categories_active_only(db_session: AsyncSession) -> None:
    await catalog_service.create_fee_category(db_session, FeeCategoryCreate(name="Tuition", fee_type=FeeType.tuition))
    await catalog_service.create_fee_category(db_session, FeeCategoryCreate(name=" Books ", fee_type=FeeType.books))
    categories = await catalog_service.list_fee_categories(db_session)
    assert [c.name for c in categories] == ["Books", "Tuition"]
    assert all(c.is_active for c in categories)


# --- Fee structures ---
async def test_create_structure_totals_every_item(db_session: AsyncSession, seed) -> None:
    structure = await seed.structure()
    assert structure.total_amount == Decimal("25000")
    assert [i.category_id for i in structure.mandatory_items] == ["cat-tuition"]
    assert [i.category_id for i in structure.optional_items] == ["cat-feeding"]
    found = await catalog_service.get_structure_by_class_and_term(db_session, CLASS_ID, ACADEMIC_YEAR, TERM)
    assert found.id == structure.id


async def test_structure_validation(seed) -> None:
    with pytest.raises(ValidationFailure):
        await seed.structure(fee_items=[])
    items = tuition_and_feeding()
    items[1].category_id = "cat-tuition"
    with pytest.raises(ValidationFailure):
        await seed.structure(fee_items=items)


async def test_second_active_structure_rejected(seed) -> None:
    await seed.structure()
    with pytest.raises(ServiceError) as exc:
        await seed.structure()
    assert exc.value.status_code == 409


async def test_update_missing_structure(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await catalog_service.update_fee_structure(db_session, "missing", FeeStructureUpdate(is_active=False))


async def test_clone_structure(db_session: AsyncSession, seed) -> None:
    source = await seed.structure()
    clone = await catalog_service.clone_fee_structure(
        db_session,
        source.id,
        FeeStructureClone(target_class_id=CLASS_ID, target_academic_year=ACADEMIC_YEAR, target_term=AcademicTerm.second),
    )
    assert clone.id != source.id
    assert clone.term == AcademicTerm.second
    assert clone.fee_items == source.fee_items
    assert clone.class_name == source.class_name

    with pytest.raises(ServiceError) as exc:
        await catalog_service.clone_fee_structure(
            db_session,
            source.id,
            FeeStructureClone(target_class_id=CLASS_ID, target_academic_year=ACADEMIC_YEAR, target_term=AcademicTerm.second),
        )
    assert exc.value.status_code == 409

    with pytest.raises(NotFoundError):
        await catalog_service.clone_fee_structure(
            db_session,
            "missing",
            FeeStructureClone(target_class_id="x", target_academic_year=ACADEMIC_YEAR, target_term=TERM),
        )

    listed = await catalog_service.list_structures_by_academic_year(db_session, ACADEMIC_YEAR)
    assert {s.id for s in listed} == {source.id, clone.id}


# --- Scholarships ---
@pytest.mark.parametrize(
    "overrides",
    [
        {"scholarship_type": ScholarshipType.percentage, "percentage_off": Decimal("120")},
        {"scholarship_type": ScholarshipType.percentage},
        {"scholarship_type": ScholarshipType.fixed_amount, "fixed_amount_off": Decimal("0")},
        {"scholarship_type": ScholarshipType.full_waiver, "applicable_to": ScholarshipApplicability.specific_classes},
        {"scholarship_type": ScholarshipType.full_waiver, "end_date": date(2019, 12, 31)},
        {"scholarship_type": ScholarshipType.full_waiver, "max_beneficiaries": 0},
        {"scholarship_type": ScholarshipType.full_waiver, "max_beneficiaries": 2, "current_beneficiaries": 3},
    ],
)
def test_scholarship_create_validation(overrides) -> None:
    with pytest.raises(ValidationError):
        ScholarshipCreate(name="Bad", start_date=date(2020, 1, 1), **overrides)


async def test_active_scholarships_exclude_expired_suspended_and_full(db_session: AsyncSession, seed) -> None:
    today = date(2025, 9, 1)
    live = await seed.scholarship(name="Live")
    await seed.scholarship(name="Suspended", status=ScholarshipStatus.suspended)
    await seed.scholarship(name="Ended", end_date=date(2024, 12, 31))
    await seed.scholarship(name="Future", start_date=today + timedelta(days=30))
    await seed.scholarship(name="Full", max_beneficiaries=1, current_beneficiaries=1)

    active = await scholarship_service.get_active_scholarships(db_session, today)
    assert [s.id for s in active] == [live.id]
    assert (await scholarship_service.get_scholarship_by_id(db_session, live.id)).name == "Live"
    assert await scholarship_service.get_scholarship_by_id(db_session, "missing") is None


async def test_applicable_scholarships_filter_by_student_class_year_and_term(
    db_session: AsyncSession, seed
) -> None:
    today = date(2025, 9, 1)
    everyone = await seed.scholarship(name="A Everyone")
    await seed.scholarship(name="B Other class", applicable_to=ScholarshipApplicability.specific_classes, class_ids=["x"])
    mine = await seed.scholarship(
        name="C Mine", applicable_to=ScholarshipApplicability.specific_students, student_ids=["st-1"]
    )
    await seed.scholarship(name="D Other year", academic_year="2024/2025")
    await seed.scholarship(name="E Third term", terms=[AcademicTerm.third])

    applicable = await scholarship_service.get_applicable_scholarships(
        db_session, "st-1", CLASS_ID, ACADEMIC_YEAR, TERM, today
    )
    assert [s.id for s in applicable] == [everyone.id, mine.id]


# --- Students ---
async def test_list_active_students_by_class(db_session: AsyncSession, seed) -> None:
    students = await seed.students(2)
    await seed.students(1, class_id="class-jss2")
    listed = await student_service.list_active_students_by_class(db_session, CLASS_ID)
    assert [s.id for s in listed] == [s.id for s in students]
    assert listed[0].full_name == "Student00 Okafor"
    assert (await student_service.get_student(db_session, students[0].id)).id == students[0].id


async def test_gateway_catalog_reads(db_session: AsyncSession, seed) -> None:
    await catalog_service.create_fee_category(db_session, FeeCategoryCreate(name="Feeding", fee_type=FeeType.feeding))
    structure = await seed.structure()
    live = await seed.scholarship(name="Live")
    await seed.scholarship(name="Paused", status=ScholarshipStatus.suspended)

    gateway = FeeGateway(db_session)
    assert [c.name for c in await gateway.get_categories_active()] == ["Feeding"]
    assert [s.id for s in await gateway.get_active_scholarships(date(2025, 9, 1))] == [live.id]
    assert (await gateway.get_structure_by_id(structure.id)).class_id == CLASS_ID
    assert await gateway.get_structure_by_id("missing") is None
