from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Union

import pandas as pd

from studio_core.coerce import as_text, normalize_any_date, parse_amount, parse_localized_date


Coercer = Callable[[Any], Any]
Row = Union[Mapping[str, Any], Sequence[Any]]


@dataclass(frozen=True)
class FieldSpec:
    column: Union[str, int]
    coerce: Coercer = as_text
    default: Any = ""


def text_or(default: str) -> Coercer:
    def _coerce(value: Any) -> str:
        return as_text(value) or default

    return _coerce


def sold_by(value: Any) -> str:
    s = as_text(value)
    if s == "-":
        return "Online/System"
    return s or "Unknown"


DISCOUNT_FIELDS: Dict[str, FieldSpec] = {
    "member_id": FieldSpec("Member ID"),
    "customer_name": FieldSpec("Customer Name"),
    "customer_email": FieldSpec("Customer Email"),
    "payment_date": FieldSpec("Payment Date", parse_localized_date),
    "payment_value": FieldSpec("Payment Value", parse_amount, 0.0),
    "payment_item": FieldSpec("Payment Item"),
    "payment_method": FieldSpec("Payment Method"),
    "sold_by": FieldSpec("Sold By", sold_by, "Unknown"),
    "location": FieldSpec("Calculated Location"),
    "cleaned_product": FieldSpec("Cleaned Product"),
    "cleaned_category": FieldSpec("Cleaned Category"),
    "mrp_pre_tax": FieldSpec("Mrp - Pre Tax", parse_amount, 0.0),
    "mrp_post_tax": FieldSpec("Mrp - Post Tax", parse_amount, 0.0),
    "discount_amount": FieldSpec("Discount Amount -Mrp- Payment Value", parse_amount, 0.0),
    "discount_percentage": FieldSpec("Discount Percentage - discount amount/mrp*100", parse_amount, 0.0),
    "membership_type": FieldSpec("Membership Type"),
}

SESSION_FIELDS: Dict[str, FieldSpec] = {
    "session_id": FieldSpec("Session ID"),
    "date": FieldSpec("Date", parse_localized_date),
    "time": FieldSpec("Time"),
    "location": FieldSpec("Location"),
    "cleaned_class": FieldSpec("Cleaned Class"),
    "trainer_name": FieldSpec("Trainer Name", text_or("Unknown"), "Unknown"),
    "capacity": FieldSpec("Capacity", parse_amount, 0.0),
    "booked": FieldSpec("Booked", parse_amount, 0.0),
    "attended": FieldSpec("Checked In", parse_amount, 0.0),
    "late_cancelled": FieldSpec("Late Cancelled", parse_amount, 0.0),
    "revenue": FieldSpec("Revenue", parse_amount, 0.0),
}

# The "New" tab is read positionally; its header row carries no stable names.
NEW_CLIENT_FIELDS: Dict[str, FieldSpec] = {
    "member_id": FieldSpec(0),
    "first_name": FieldSpec(1),
    "last_name": FieldSpec(2),
    "email": FieldSpec(3),
    "phone_number": FieldSpec(4),
    "first_visit_date": FieldSpec(5, normalize_any_date),
    "first_visit_entity_name": FieldSpec(6),
    "first_visit_type": FieldSpec(7),
    "first_visit_location": FieldSpec(8),
    "payment_method": FieldSpec(9),
    "membership_used": FieldSpec(10),
    "home_location": FieldSpec(11),
    "class_no": FieldSpec(12, parse_amount, 0.0),
    "trainer_name": FieldSpec(13),
    "is_new": FieldSpec(14),
    "visits_post_trial": FieldSpec(15, parse_amount, 0.0),
    "memberships_bought_post_trial": FieldSpec(16),
    "purchase_count_post_trial": FieldSpec(17, parse_amount, 0.0),
    "ltv": FieldSpec(18, parse_amount, 0.0),
    "retention_status": FieldSpec(19),
    "conversion_status": FieldSpec(20),
    "period": FieldSpec(21),
    "unique": FieldSpec(22),
    "first_purchase": FieldSpec(23),
    "conversion_span": FieldSpec(24, parse_amount, 0.0),
}


def _cell(row: Row, column: Union[str, int]) -> Any:
    if isinstance(column, int):
        if isinstance(row, Mapping) or column >= len(row):
            return None
        return row[column]
    if isinstance(row, Mapping):
        return row.get(column)
    return None


def normalize_row(row: Row, fields: Mapping[str, FieldSpec]) -> Dict[str, Any]:
    """Map one raw row onto every semantic field; never raises, never omits a field."""
    out: Dict[str, Any] = {}
    for name, spec in fields.items():
        raw = _cell(row, spec.column)
        if raw is None:
            out[name] = spec.default
            continue
        try:
            out[name] = spec.coerce(raw)
        except (TypeError, ValueError):
            out[name] = spec.default
    return out


def rows_from_grid(grid: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Key each data row by the grid's first (header) row."""
    if not grid or len(grid) < 2:
        return []
    headers = [as_text(h) for h in grid[0]]
    rows: List[Dict[str, Any]] = []
    for raw in grid[1:]:
        if not raw:
            continue
        rows.append({h: raw[i] for i, h in enumerate(headers) if h and i < len(raw)})
    return rows


def normalize_rows(rows: Iterable[Row], fields: Mapping[str, FieldSpec]) -> pd.DataFrame:
    records = [normalize_row(r, fields) for r in rows]
    return pd.DataFrame(records, columns=list(fields))


def has_discount(record: Mapping[str, Any]) -> bool:
    return (record.get("discount_amount") or 0) > 0 or (record.get("discount_percentage") or 0) > 0
