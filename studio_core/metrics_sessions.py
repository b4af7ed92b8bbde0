from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from studio_core.breakdowns import group_breakdown, safe_ratio, safe_sum
from studio_core.filters import FilterSpec


CLASS_FORMATS = {"powercycle": "powercycle", "barre": "barre"}

_SESSION_SUMS = {"attendance": "attended", "capacity": "capacity", "bookings": "booked"}


def _numeric(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df[col], errors="coerce").fillna(0)


def no_shows(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return float((_numeric(df, "booked") - _numeric(df, "attended")).clip(lower=0).sum())


def session_metrics(df: pd.DataFrame) -> Dict[str, Any]:
    total_sessions = int(len(df))
    attended = _numeric(df, "attended")
    total_attendance = float(attended.sum())
    total_capacity = safe_sum(df, "capacity")
    with_attendance = attended[attended > 0]
    return {
        "total_sessions": total_sessions,
        "total_attendance": total_attendance,
        "total_capacity": total_capacity,
        "total_bookings": safe_sum(df, "booked"),
        "empty_sessions": int((attended == 0).sum()),
        "avg_fill_rate": safe_ratio(total_attendance, total_capacity, 100.0),
        "avg_session_size": safe_ratio(total_attendance, total_sessions),
        "avg_session_size_excl_empty": safe_ratio(float(with_attendance.sum()), len(with_attendance)),
        "no_shows": no_shows(df),
    }


def _class_mask(df: pd.DataFrame, *tokens: str) -> pd.Series:
    if "cleaned_class" not in df.columns:
        return pd.Series(False, index=df.index)
    classes = df["cleaned_class"].fillna("").astype(str).str.lower()
    mask = pd.Series(False, index=df.index)
    for token in tokens:
        mask |= classes.str.contains(token, regex=False)
    return mask


def filter_class_format(df: pd.DataFrame, *tokens: str) -> pd.DataFrame:
    if df.empty:
        return df
    return df[_class_mask(df, *tokens)]


def _format_breakdowns(df: pd.DataFrame) -> Dict[str, Any]:
    return {
        "trainer_breakdown": group_breakdown(
            df,
            "trainer_name",
            label="trainer",
            fallback="Unknown",
            count_name="sessions",
            sums=_SESSION_SUMS,
            averages={"avg_attendance": "attended"},
        ),
        "location_breakdown": group_breakdown(
            df,
            "location",
            label="location",
            fallback="Unknown Location",
            count_name="sessions",
            sums=_SESSION_SUMS,
            averages={"avg_attendance": "attended"},
        ),
    }


def compute_class_comparison(filters: FilterSpec, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_sessions", pd.DataFrame())
    formats: Dict[str, Any] = {}
    for name, token in CLASS_FORMATS.items():
        subset = filter_class_format(df, token)
        formats[name] = {"metrics": session_metrics(subset), **_format_breakdowns(subset)}
    compared = filter_class_format(df, *CLASS_FORMATS.values())
    return {
        "filters": asdict(filters),
        "overall": session_metrics(compared),
        "formats": formats,
    }
