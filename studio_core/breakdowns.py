from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import pandas as pd


def safe_sum(df: pd.DataFrame, col: str) -> float:
    if df.empty or col not in df.columns:
        return 0.0
    return float(pd.to_numeric(df[col], errors="coerce").fillna(0).sum())


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator * scale


def group_labels(df: pd.DataFrame, key: str, fallback: str) -> pd.Series:
    """Group key per row, taken verbatim; only an empty key gets ``fallback``."""
    labels = df[key].fillna("").astype(str)
    return labels.where(labels.ne(""), fallback)


def group_breakdown(
    df: pd.DataFrame,
    key: str,
    *,
    label: str,
    fallback: str,
    count_name: str = "transactions",
    sums: Optional[Mapping[str, str]] = None,
    averages: Optional[Mapping[str, str]] = None,
) -> List[Dict[str, Any]]:
    """Aggregate ``df`` per distinct ``key`` value, in first-seen order.

    ``sums`` and ``averages`` map output names to source columns. Averages are
    computed over the full subset of rows carrying each label, not accumulated
    while grouping.
    """
    if df.empty or key not in df.columns:
        return []
    sums = dict(sums or {})
    averages = dict(averages or {})

    labeled = df.assign(_group=group_labels(df, key, fallback))
    grouped = labeled.groupby("_group", sort=False)
    counts = grouped.size()
    totals = {name: grouped[col].sum() for name, col in sums.items() if col in labeled.columns}

    out: List[Dict[str, Any]] = []
    for group in counts.index:
        entry: Dict[str, Any] = {label: group, count_name: int(counts[group])}
        for name, col in sums.items():
            entry[name] = float(totals[name][group]) if name in totals else 0.0
        out.append(entry)

    for entry in out:
        subset = labeled[labeled["_group"] == entry[label]]
        for name, col in averages.items():
            entry[name] = safe_ratio(safe_sum(subset, col), len(subset))
    return out
