from __future__ import annotations

from typing import Any, Dict, List, Sequence

from studio_core.sheets import GRAND_TOTAL, LogicalTable, TableType


def _row_total(values: Dict[str, float]) -> float:
    if GRAND_TOTAL in values:
        return values[GRAND_TOTAL]
    return float(sum(values.values()))


def _totals_by(tables: Sequence[LogicalTable], table_type: TableType, *, use_label: bool) -> List[Dict[str, Any]]:
    totals: Dict[str, float] = {}
    for table in tables:
        if table.table_type is not table_type:
            continue
        for row in table.rows:
            key = (row.label or "Unknown") if use_label else row.location
            totals[key] = totals.get(key, 0.0) + _row_total(row.values)
    name = "label" if use_label else "location"
    return [{name: k, "late_cancellations": v} for k, v in totals.items()]


def summarize_table(table: LogicalTable) -> Dict[str, Any]:
    periods = [c for c in table.value_columns if c != GRAND_TOTAL]
    period_totals = {p: float(sum(r.values.get(p, 0.0) for r in table.rows)) for p in periods}
    return {
        "table_type": table.table_type.value,
        "headers": list(table.headers),
        "periods": periods,
        "period_totals": period_totals,
        "grand_total": float(sum(_row_total(r.values) for r in table.rows)),
        "rows": [
            {"location": r.location, "label": r.label or "", **r.values}
            for r in table.rows
        ],
    }


def compute_late_cancellations(tables: Sequence[LogicalTable]) -> Dict[str, Any]:
    """Summaries for every stacked late-cancellation table plus cross-table totals."""
    by_location = [t for t in tables if t.table_type is TableType.BY_LOCATION]
    return {
        "table_count": len(tables),
        "tables": [summarize_table(t) for t in tables],
        "grand_total": float(sum(summarize_table(t)["grand_total"] for t in by_location)),
        "location_totals": _totals_by(tables, TableType.BY_LOCATION, use_label=False),
        "class_totals": _totals_by(tables, TableType.BY_CLASS, use_label=True),
        "trainer_totals": _totals_by(tables, TableType.BY_TRAINER, use_label=True),
        "product_totals": _totals_by(tables, TableType.BY_PRODUCT, use_label=True),
    }
