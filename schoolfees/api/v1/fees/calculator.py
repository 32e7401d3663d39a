"""Scholarship discount arithmetic. Pure: no session, no I/O."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, List, Optional, Sequence

from schoolfees.api.v1.fee_structures.schemas import FeeItem
from schoolfees.api.v1.scholarships.schemas import ScholarshipResponse
from schoolfees.core.enums import FeeTypeFilterPolicy, ScholarshipType

from .schemas import DiscountBreakdown

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Chooses which of the selected items the discount is computed over.
ItemFilter = Callable[[Sequence[FeeItem], Optional[ScholarshipResponse]], List[FeeItem]]


def _to_decimal(val) -> Decimal:
    if val is None:
        return ZERO
    try:
        return val if isinstance(val, Decimal) else Decimal(str(val))
    except InvalidOperation:
        return ZERO


def _non_negative(val) -> Decimal:
    d = _to_decimal(val)
    if d.is_nan() or d < 0:
        return ZERO
    return d


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def all_items(items: Sequence[FeeItem], scholarship: Optional[ScholarshipResponse]) -> List[FeeItem]:
    return list(items)


def fee_type_filtered_items(
    items: Sequence[FeeItem], scholarship: Optional[ScholarshipResponse]
) -> List[FeeItem]:
    """Items whose fee type passes the scholarship's inclusion and exclusion lists."""
    if scholarship is None:
        return list(items)
    excluded = set(scholarship.excluded_fee_types or [])
    included = set(scholarship.applicable_to_fee_types or [])
    out = []
    for item in items:
        if item.fee_type in excluded:
            continue
        if included and item.fee_type not in included:
            continue
        out.append(item)
    return out


def item_filter_for_policy(policy: FeeTypeFilterPolicy) -> ItemFilter:
    if policy == FeeTypeFilterPolicy.restrict:
        return fee_type_filtered_items
    return all_items


def calculate_discount(
    selected_items: Sequence[FeeItem],
    scholarship: Optional[ScholarshipResponse] = None,
    item_filter: ItemFilter = all_items,
) -> DiscountBreakdown:
    """
    Price the selected items (mandatory + chosen optional) under an optional scholarship.

    percentage:   base * percentage_off / 100
    fixed_amount: min(fixed_amount_off, base)
    full_waiver:  base
    then capped by max_discount_per_student when set. base is the original amount
    unless item_filter narrows it. Negative or missing values on the scholarship
    count as zero. The result always satisfies 0 <= discount <= original.
    """
    original = sum((_non_negative(i.amount) for i in selected_items), ZERO)
    if scholarship is None or original == 0:
        return DiscountBreakdown(
            original_amount=round_money(original),
            discount_amount=round_money(ZERO),
            total_amount=round_money(original),
        )

    base = sum((_non_negative(i.amount) for i in item_filter(selected_items, scholarship)), ZERO)

    if scholarship.scholarship_type == ScholarshipType.percentage:
        discount = base * _non_negative(scholarship.percentage_off) / Decimal("100")
    elif scholarship.scholarship_type == ScholarshipType.fixed_amount:
        discount = min(_non_negative(scholarship.fixed_amount_off), base)
    elif scholarship.scholarship_type == ScholarshipType.full_waiver:
        discount = base
    else:
        discount = ZERO

    if scholarship.max_discount_per_student is not None:
        discount = min(discount, _non_negative(scholarship.max_discount_per_student))

    discount = round_money(min(max(discount, ZERO), original))
    total = max(ZERO, original - discount)
    return DiscountBreakdown(
        original_amount=round_money(original),
        discount_amount=discount,
        total_amount=round_money(total),
    )
