from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from studio_core.breakdowns import group_breakdown, group_labels, safe_ratio, safe_sum
from studio_core.filters import FilterSpec


CONVERTED = "converted"
RETAINED = "retained"
UNKNOWN = "Unknown"

_CLIENT_AVERAGES = {"avg_ltv": "ltv", "avg_visits_post_trial": "visits_post_trial"}


def _status_mask(df: pd.DataFrame, col: str, value: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(False, index=df.index)
    return df[col].fillna("").astype(str).str.strip().str.lower().eq(value)


def _client_breakdown(df: pd.DataFrame, key: str, label: str):
    rows = group_breakdown(
        df,
        key,
        label=label,
        fallback=UNKNOWN,
        count_name="clients",
        sums={"total_ltv": "ltv"},
        averages=_CLIENT_AVERAGES,
    )
    if not rows:
        return rows
    labeled = df.assign(_converted=_status_mask(df, "conversion_status", CONVERTED))
    keys = group_labels(labeled, key, UNKNOWN)
    converted = labeled.groupby(keys, sort=False)["_converted"].sum()
    for entry in rows:
        count = int(converted.get(entry[label], 0))
        entry["converted"] = count
        entry["conversion_rate"] = safe_ratio(count, entry["clients"], 100.0)
    return rows


def new_client_metrics(df: pd.DataFrame) -> Dict[str, Any]:
    total = int(len(df))
    converted = _status_mask(df, "conversion_status", CONVERTED)
    retained = _status_mask(df, "retention_status", RETAINED)
    converted_df = df[converted]
    return {
        "total_clients": total,
        "converted_clients": int(converted.sum()),
        "retained_clients": int(retained.sum()),
        "conversion_rate": safe_ratio(float(converted.sum()), total, 100.0),
        "retention_rate": safe_ratio(float(retained.sum()), total, 100.0),
        "total_ltv": safe_sum(df, "ltv"),
        "avg_ltv": safe_ratio(safe_sum(df, "ltv"), total),
        "avg_conversion_span": safe_ratio(safe_sum(converted_df, "conversion_span"), len(converted_df)),
    }


def compute_new_clients(filters: FilterSpec, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_new_clients", pd.DataFrame())
    if df.empty:
        return {"filters": asdict(filters), "metrics": new_client_metrics(df), "location_breakdown": [], "trainer_breakdown": []}
    return {
        "filters": asdict(filters),
        "metrics": new_client_metrics(df),
        "location_breakdown": _client_breakdown(df, "first_visit_location", "location"),
        "trainer_breakdown": _client_breakdown(df, "trainer_name", "trainer"),
    }
