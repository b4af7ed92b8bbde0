from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import pandas as pd

from studio_core.coerce import normalize_any_date


# FilterSpec attribute -> record column it restricts
INCLUSION_COLUMNS = {
    "payment_methods": "payment_method",
    "categories": "cleaned_category",
    "products": "cleaned_product",
    "sold_by": "sold_by",
    "locations": "location",
    "trainers": "trainer_name",
    "classes": "cleaned_class",
}


@dataclass(frozen=True)
class FilterSpec:
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    payment_methods: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    products: List[str] = field(default_factory=list)
    sold_by: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    location: Optional[str] = None
    trainers: List[str] = field(default_factory=list)
    classes: List[str] = field(default_factory=list)
    min_discount: Optional[float] = None
    max_discount: Optional[float] = None

    @property
    def has_date_bound(self) -> bool:
        return bool(self.date_start or self.date_end)


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(x) for x in values if x is not None and str(x) != ""]


def _as_optional_float(value: object) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_date_bound(value: object) -> Optional[str]:
    iso = normalize_any_date(value)
    return iso or None


def normalize_filters(raw: dict) -> FilterSpec:
    raw = raw or {}
    date_range = raw.get("date_range") or {}
    location = raw.get("location")
    # "all" is the location selector's no-restriction value
    if not location or str(location).lower() == "all":
        location = None

    return FilterSpec(
        date_start=_as_date_bound(raw.get("date_start") or date_range.get("start")),
        date_end=_as_date_bound(raw.get("date_end") or date_range.get("end")),
        payment_methods=_as_str_list(raw.get("payment_methods")),
        categories=_as_str_list(raw.get("categories")),
        products=_as_str_list(raw.get("products")),
        sold_by=_as_str_list(raw.get("sold_by")),
        locations=_as_str_list(raw.get("locations")),
        location=str(location) if location else None,
        trainers=_as_str_list(raw.get("trainers")),
        classes=_as_str_list(raw.get("classes")),
        min_discount=_as_optional_float(raw.get("min_discount")),
        max_discount=_as_optional_float(raw.get("max_discount")),
    )


def apply_filters(
    df: pd.DataFrame,
    spec: FilterSpec,
    *,
    date_col: Optional[str] = None,
    amount_col: str = "discount_amount",
) -> pd.DataFrame:
    """Return the rows of ``df`` matching ``spec``, in their original order."""
    if df.empty:
        return df.copy()

    mask = pd.Series(True, index=df.index)

    if spec.has_date_bound and date_col:
        if date_col not in df.columns:
            return df.iloc[0:0].copy()
        dates = df[date_col].apply(normalize_any_date)
        mask &= dates.ne("")
        # ISO strings order the same way the dates do
        if spec.date_start:
            mask &= dates.ge(spec.date_start)
        if spec.date_end:
            mask &= dates.le(spec.date_end)

    for attr, col in INCLUSION_COLUMNS.items():
        allowed = getattr(spec, attr)
        if allowed and col in df.columns:
            mask &= df[col].astype(str).isin(set(allowed))

    # the single-location selector narrows on top of any location list
    if spec.location and "location" in df.columns:
        mask &= df["location"].astype(str).eq(spec.location)

    if amount_col in df.columns:
        amounts = pd.to_numeric(df[amount_col], errors="coerce").fillna(0)
        if spec.min_discount is not None:
            mask &= amounts.ge(spec.min_discount)
        if spec.max_discount is not None:
            mask &= amounts.le(spec.max_discount)

    return df[mask].copy()
