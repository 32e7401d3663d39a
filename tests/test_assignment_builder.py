from datetime import date, datetime
from decimal import Decimal

import pytest

from schoolfees.api.v1.fee_structures.schemas import FeeItem, FeeStructureResponse
from schoolfees.api.v1.fees.builder import (
    build_assignment,
    derive_status,
    resolve_optional_selection,
    validate_optional_selection,
)
from schoolfees.api.v1.students.schemas import StudentProfileResponse
from schoolfees.core.enums import AcademicTerm, FeeType, StudentFeeStatus
from schoolfees.core.exceptions import ValidationFailure

from conftest import scholarship_snapshot, tuition_and_feeding


def _structure(items=None) -> FeeStructureResponse:
    items = items if items is not None else tuition_and_feeding()
    now = datetime(2025, 9, 1)
    return FeeStructureResponse(
        id="fs-1",
        class_id="class-jss1",
        class_name="JSS 1",
        academic_year="2025/2026",
        term=AcademicTerm.first,
        fee_items=items,
        total_amount=sum((i.amount for i in items), Decimal("0")),
        is_active=True,
        created_at=now,
        updated_at=now,
    )


def _student() -> StudentProfileResponse:
    return StudentProfileResponse(id="st-1", first_name="Ada", surname="Obi", class_id="class-jss1")


def test_mandatory_items_always_billed() -> None:
    record = build_assignment(_student(), _structure(), set())
    tuition, feeding = record.fee_items
    assert tuition.is_selected and tuition.is_mandatory
    assert not feeding.is_selected
    assert feeding.balance == Decimal("0")
    assert record.original_amount == Decimal("20000")
    assert record.total_amount == Decimal("20000")
    assert record.balance == Decimal("20000")
    assert record.status == StudentFeeStatus.unpaid


def test_selected_optional_item_is_billed_with_scholarship() -> None:
    record = build_assignment(
        _student(),
        _structure(),
        {"cat-feeding"},
        scholarship=scholarship_snapshot(),
        due_date=date(2025, 10, 1),
    )
    assert [i.is_selected for i in record.fee_items] == [True, True]
    assert record.original_amount == Decimal("25000")
    assert record.discount_amount == Decimal("2500")
    assert record.total_amount == Decimal("22500")
    assert record.scholarship_id == "sch-1"
    assert record.scholarship_name == "Merit"
    assert record.student_name == "Ada Obi"
    assert record.amount_paid == Decimal("0")
    assert record.due_date == date(2025, 10, 1)


def test_zero_total_is_born_paid() -> None:
    items = [FeeItem(category_id="c", category_name="PTA", fee_type=FeeType.pta, amount=Decimal("0"), is_mandatory=True)]
    record = build_assignment(_student(), _structure(items), set())
    assert record.total_amount == Decimal("0")
    assert record.status == StudentFeeStatus.paid


def test_per_student_selection_wins_over_shared() -> None:
    per_student = {"st-1": [], "st-2": ["cat-feeding"]}
    assert resolve_optional_selection("st-1", per_student, ["cat-feeding"]) == set()
    assert resolve_optional_selection("st-2", per_student, None) == {"cat-feeding"}
    assert resolve_optional_selection("st-3", per_student, ["cat-feeding"]) == {"cat-feeding"}
    assert resolve_optional_selection("st-3", None, None) == set()


def test_selection_must_reference_optional_items() -> None:
    validate_optional_selection(_structure(), ["cat-feeding"])
    with pytest.raises(ValidationFailure):
        validate_optional_selection(_structure(), ["cat-tuition"])
    with pytest.raises(ValidationFailure):
        validate_optional_selection(_structure(), ["cat-unknown"])


@pytest.mark.parametrize(
    "total, paid, expected",
    [
        ("25000", "0", StudentFeeStatus.unpaid),
        ("25000", "10000", StudentFeeStatus.partial),
        ("25000", "25000", StudentFeeStatus.paid),
        ("25000", "30000", StudentFeeStatus.overpaid),
        ("0", "0", StudentFeeStatus.paid),
    ],
)
def test_derive_status(total, paid, expected) -> None:
    assert derive_status(Decimal(total), Decimal(paid)) == expected


def test_fee_item_must_be_mandatory_or_optional() -> None:
    with pytest.raises(ValueError):
        FeeItem(category_id="c", category_name="X", amount=Decimal("1"), is_mandatory=True, is_optional=True)
