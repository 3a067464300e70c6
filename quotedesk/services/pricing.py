"""
Quote total calculation.

All money arithmetic is done in Decimal and quantized to cents with
ROUND_HALF_UP. VAT is always charged on the discounted amount:

    vat_amount = max(subtotal - discount, 0) * vat_rate / 100
    total      = subtotal - discount + vat_amount
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Union

Number = Union[Decimal, int, float, str, None]

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Convert user/DB input to Decimal. Floats go through str() to avoid binary drift."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid amount")
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def round2(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    vat_amount: Decimal
    total: Decimal


def _field(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def line_total(item: Any) -> Decimal:
    """quantity * unit_price for a selected line, 0 for a deselected one."""
    is_selected = _field(item, "is_selected", True)
    if is_selected is False:
        return round2(ZERO)
    return round2(to_decimal(_field(item, "quantity", 0)) * to_decimal(_field(item, "unit_price", 0)))


def compute_totals(
    items: Iterable[Any],
    discount: Number = 0,
    vat_rate: Number = 0,
    include_vat: bool = True,
) -> QuoteTotals:
    """
    Derive subtotal, VAT and total from quote lines.

    Args:
        items: QuoteItem rows or dicts with quantity, unit_price, is_selected
        discount: absolute discount amount
        vat_rate: percentage, e.g. 21
        include_vat: when False the VAT amount is zero

    Returns:
        QuoteTotals with every amount rounded to cents
    """
    raw_subtotal = ZERO
    for item in items:
        if _field(item, "is_selected", True) is False:
            continue
        raw_subtotal += to_decimal(_field(item, "quantity", 0)) * to_decimal(_field(item, "unit_price", 0))

    subtotal = round2(raw_subtotal)
    discount_amount = round2(discount)

    if include_vat:
        taxable = max(subtotal - discount_amount, ZERO)
        vat_amount = round2(taxable * to_decimal(vat_rate) / HUNDRED)
    else:
        vat_amount = round2(ZERO)

    total = round2(subtotal - discount_amount + vat_amount)
    return QuoteTotals(subtotal=subtotal, vat_amount=vat_amount, total=total)
