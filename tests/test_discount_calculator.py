from decimal import Decimal

import pytest

from schoolfees.api.v1.fee_structures.schemas import FeeItem
from schoolfees.api.v1.fees.calculator import (
    all_items,
    calculate_discount,
    fee_type_filtered_items,
    item_filter_for_policy,
)
from schoolfees.core.enums import FeeType, FeeTypeFilterPolicy, ScholarshipType

from conftest import scholarship_snapshot, tuition_and_feeding


def test_no_scholarship_bills_original_amount() -> None:
    result = calculate_discount(tuition_and_feeding())
    assert result.original_amount == Decimal("25000")
    assert result.discount_amount == Decimal("0")
    assert result.total_amount == Decimal("25000")


def test_percentage_scholarship() -> None:
    result = calculate_discount(tuition_and_feeding(), scholarship_snapshot(percentage_off=Decimal("10")))
    assert result.discount_amount == Decimal("2500")
    assert result.total_amount == Decimal("22500")


def test_fixed_amount_above_original_is_clamped() -> None:
    s = scholarship_snapshot(
        scholarship_type=ScholarshipType.fixed_amount,
        percentage_off=None,
        fixed_amount_off=Decimal("30000"),
    )
    result = calculate_discount(tuition_and_feeding(), s)
    assert result.discount_amount == Decimal("25000")
    assert result.total_amount == Decimal("0")


def test_full_waiver_discounts_everything() -> None:
    s = scholarship_snapshot(scholarship_type=ScholarshipType.full_waiver, percentage_off=None)
    result = calculate_discount(tuition_and_feeding(), s)
    assert result.discount_amount == Decimal("25000")
    assert result.total_amount == Decimal("0")


def test_cap_limits_discount() -> None:
    s = scholarship_snapshot(percentage_off=Decimal("50"), max_discount_per_student=Decimal("4000"))
    result = calculate_discount(tuition_and_feeding(), s)
    assert result.discount_amount == Decimal("4000")
    assert result.total_amount == Decimal("21000")


@pytest.mark.parametrize(
    "overrides",
    [
        {"percentage_off": Decimal("-20")},
        {"percentage_off": None},
        {"scholarship_type": ScholarshipType.fixed_amount, "percentage_off": None, "fixed_amount_off": Decimal("-5")},
        {"percentage_off": Decimal("10"), "max_discount_per_student": Decimal("-1")},
    ],
)
def test_malformed_scholarship_values_count_as_zero(overrides) -> None:
    result = calculate_discount(tuition_and_feeding(), scholarship_snapshot(**overrides))
    assert result.discount_amount == Decimal("0")
    assert result.total_amount == Decimal("25000")


def test_percentage_above_hundred_never_exceeds_original() -> None:
    result = calculate_discount(tuition_and_feeding(), scholarship_snapshot(percentage_off=Decimal("150")))
    assert result.discount_amount == result.original_amount
    assert result.total_amount == Decimal("0")


def test_discount_rounds_half_up_to_cents() -> None:
    items = [FeeItem(category_id="c", category_name="Books", amount=Decimal("100.05"), is_mandatory=True)]
    result = calculate_discount(items, scholarship_snapshot(percentage_off=Decimal("50")))
    # 50.025 -> 50.03
    assert result.discount_amount == Decimal("50.03")
    assert result.total_amount == Decimal("50.02")


def test_empty_selection() -> None:
    result = calculate_discount([], scholarship_snapshot())
    assert result.original_amount == Decimal("0")
    assert result.discount_amount == Decimal("0")
    assert result.total_amount == Decimal("0")


def test_restrict_policy_discounts_only_matching_fee_types() -> None:
    s = scholarship_snapshot(percentage_off=Decimal("10"), applicable_to_fee_types=[FeeType.tuition])
    result = calculate_discount(tuition_and_feeding(), s, fee_type_filtered_items)
    assert result.original_amount == Decimal("25000")
    assert result.discount_amount == Decimal("2000")
    assert result.total_amount == Decimal("23000")


def test_restrict_policy_honours_exclusions() -> None:
    s = scholarship_snapshot(
        scholarship_type=ScholarshipType.full_waiver,
        percentage_off=None,
        excluded_fee_types=[FeeType.feeding],
    )
    result = calculate_discount(tuition_and_feeding(), s, fee_type_filtered_items)
    assert result.discount_amount == Decimal("20000")
    assert result.total_amount == Decimal("5000")


def test_ignore_policy_discounts_full_selection_despite_fee_type_lists() -> None:
    s = scholarship_snapshot(percentage_off=Decimal("10"), applicable_to_fee_types=[FeeType.tuition])
    result = calculate_discount(tuition_and_feeding(), s)
    assert result.discount_amount == Decimal("2500")


def test_item_filter_for_policy() -> None:
    assert item_filter_for_policy(FeeTypeFilterPolicy.ignore) is all_items
    assert item_filter_for_policy(FeeTypeFilterPolicy.restrict) is fee_type_filtered_items
    assert item_filter_for_policy(FeeTypeFilterPolicy("restrict")) is fee_type_filtered_items
