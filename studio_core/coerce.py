from __future__ import annotations

import math
import re
from typing import Optional

import pandas as pd


CURRENCY_TOKENS = ("â‚¹", "₹", "$", "€", "£")
NULL_TOKENS = {"nan", "none", "null", "<na>"}
DATE_ORDERS = {
    "DMY": (0, 1, 2),
    "MDY": (1, 0, 2),
    "YMD": (2, 1, 0),
}

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_ISO_DATE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}")


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def as_text(value: object) -> str:
    if _is_missing(value):
        return ""
    s = str(value).strip()
    if s.lower() in NULL_TOKENS:
        return ""
    return s


def parse_amount(value: object) -> float:
    """Parse a currency/number cell like ``"₹1,234.50"`` into a float, ``0.0`` when unusable."""
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return _finite(float(value))
    s = str(value)
    for token in CURRENCY_TOKENS:
        s = s.replace(token, "")
    s = re.sub(r"[,\s]", "", s)
    if not s:
        return 0.0
    try:
        return _finite(float(s))
    except ValueError:
        pass
    # spreadsheet exports sometimes append units ("12sessions"); keep the numeric prefix
    match = _LEADING_NUMBER.match(s)
    if not match:
        return 0.0
    return _finite(float(match.group(0)))


def parse_grid_numeric(value: object) -> float:
    """Like :func:`parse_amount`, but epoch-formatted cells (``30-12-1899``) count as zero."""
    if isinstance(value, str) and "-" in value and ("1899" in value or "1900" in value):
        return 0.0
    return parse_amount(value)


def parse_localized_date(value: object, source_format: str = "DMY") -> str:
    """Convert ``DD/MM/YYYY[ HH:MM[:SS]]`` text into ``YYYY-MM-DD``; ``''`` when malformed."""
    order = DATE_ORDERS.get(source_format.upper())
    s = as_text(value)
    if order is None or not s:
        return ""
    date_part = s.split()[0]
    parts = date_part.split("/")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return ""
    day, month, year = (parts[i] for i in order)
    if len(year) != 4:
        return ""
    return _valid_iso(f"{year}-{month.zfill(2)}-{day.zfill(2)}")


def _valid_iso(iso: str) -> str:
    ts = pd.to_datetime(iso, format="%Y-%m-%d", errors="coerce")
    if pd.isna(ts):
        return ""
    return ts.strftime("%Y-%m-%d")


def normalize_any_date(value: object) -> str:
    """Accept either ISO text or day-first slash dates and return ISO (or ``''``)."""
    s = as_text(value)
    if not s:
        return ""
    if "/" in s:
        return parse_localized_date(s, "DMY")
    match = _ISO_DATE.match(s)
    if not match:
        return ""
    year, month, day = match.group(0).split("-")
    return _valid_iso(f"{year}-{month.zfill(2)}-{day.zfill(2)}")


def month_key(iso_date: str) -> Optional[str]:
    if not iso_date or len(iso_date) < 7:
        return None
    return iso_date[:7]
