"""Normalization of loosely typed invoice input into canonical values.

Prices and quantities arrive as numbers or as free-form strings such as
``"$1,250.00"`` or ``"3 pcs"``. Anything that cannot be read becomes zero;
normalization never raises for a bad price or quantity. Only structural
problems (missing items, non-object entries, missing invoice id or customer)
are reported, as :class:`InputError`.
"""

from __future__ import annotations

import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import InputError
from .formatting import fmt_date
from .models import InvoiceDocument, LineItem

CENT = Decimal("0.01")
ZERO = Decimal("0")

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")
_FLOAT_PREFIX = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)")
_INT_PREFIX = re.compile(r"^[+-]?\d+")


def quantize(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        # Room for every integer digit plus cents; the default 28 digits would raise.
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def fixed(value: Decimal) -> str:
    return f"{quantize(value):.2f}"


def line_total(price: Decimal, quantity: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(price.as_tuple().digits) + quantity.bit_length() // 3 + 2)
        return price * quantity


def _decimal_from_number(value: Any) -> Decimal:
    if isinstance(value, float) and not math.isfinite(value):
        return ZERO
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def parse_price(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float, Decimal)):
        return _decimal_from_number(value)

    text = str(value)
    if text == "0.00":
        return ZERO
    match = _FLOAT_PREFIX.match(_NON_NUMERIC.sub("", text))
    if match is None:
        return ZERO
    return _decimal_from_number(match.group(0))


def parse_quantity(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        if isinstance(value, (float, Decimal)):
            quantity = int(value)
        elif isinstance(value, int):
            quantity = value
        else:
            match = _INT_PREFIX.match(str(value).strip())
            quantity = int(match.group(0)) if match else 0
    except (ValueError, OverflowError):
        # NaN, infinities and digit strings past the int conversion limit.
        return 0
    return max(quantity, 0)


def normalize_item(raw: Dict[str, Any]) -> LineItem:
    price = parse_price(raw.get("price"))
    quantity = parse_quantity(raw.get("quantity"))
    name = raw.get("name")
    return LineItem(
        name="" if name is None else str(name).strip(),
        price=fixed(price),
        quantity=quantity,
        subtotal=fixed(line_total(price, quantity)),
    )


def sum_subtotals(items: Sequence[LineItem]) -> str:
    # Re-parse the fixed strings so the total matches the printed subtotals.
    subtotals = [Decimal(item.subtotal) for item in items]
    with localcontext() as ctx:
        widest = max((len(value.as_tuple().digits) for value in subtotals), default=0)
        ctx.prec = max(ctx.prec, widest + len(str(len(subtotals))) + 1)
        return fixed(sum(subtotals, ZERO))


def normalize_items(raw_items: Any) -> Tuple[List[LineItem], str]:
    if raw_items is None:
        raise InputError("'items' is required.")
    if not isinstance(raw_items, list):
        raise InputError("'items' must be an array.")

    items: List[LineItem] = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise InputError(f"items[{index}] must be an object.")
        items.append(normalize_item(raw))
    return items, sum_subtotals(items)


def _required_text(payload: Dict[str, Any], field: str) -> str:
    value = payload.get(field)
    text = "" if value is None else str(value).strip()
    if not text:
        raise InputError(f"'{field}' is required.")
    return text


def build_document(payload: Dict[str, Any], today: Optional[date] = None) -> InvoiceDocument:
    invoice_id = _required_text(payload, "invoiceId")
    customer_name = _required_text(payload, "customerName")
    items, total = normalize_items(payload.get("items"))
    return InvoiceDocument(
        invoice_id=invoice_id,
        customer_name=customer_name,
        date=fmt_date(payload.get("date"), today=today),
        items=tuple(items),
        total=total,
    )
