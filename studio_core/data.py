from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import pandas as pd

from studio_core.fetch import Grid, fetch_grid, freeze_grid
from studio_core.filters import FilterSpec, apply_filters, normalize_filters
from studio_core.records import (
    DISCOUNT_FIELDS,
    NEW_CLIENT_FIELDS,
    SESSION_FIELDS,
    has_discount,
    normalize_rows,
    rows_from_grid,
)
from studio_core.sheets import LogicalTable, parse_tables


logger = logging.getLogger(__name__)

GridFetcher = Callable[[str], Awaitable[Grid]]

SOURCES = ("discounts", "sessions", "late_cancellations", "new_clients")


# ---------------- Loaders ----------------
def load_discounts(grid: Sequence[Sequence[Any]]) -> pd.DataFrame:
    df = normalize_rows(rows_from_grid(grid), DISCOUNT_FIELDS)
    if df.empty:
        return df
    discounted = df[df.apply(has_discount, axis=1)].reset_index(drop=True)
    logger.info("Discount analysis: %d transactions, %d discounted", len(df), len(discounted))
    return discounted


def load_sessions(grid: Sequence[Sequence[Any]]) -> pd.DataFrame:
    return normalize_rows(rows_from_grid(grid), SESSION_FIELDS)


def load_new_clients(grid: Sequence[Sequence[Any]]) -> pd.DataFrame:
    if not grid or len(grid) < 2:
        return normalize_rows([], NEW_CLIENT_FIELDS)
    df = normalize_rows([row for row in grid[1:] if row], NEW_CLIENT_FIELDS)
    logger.info("New client data loaded: %d records", len(df))
    return df


def load_late_cancellations(grid: Sequence[Sequence[Any]]) -> List[LogicalTable]:
    tables = parse_tables(grid)
    logger.info("Late cancellations: %d tables, %d rows", len(tables), sum(len(t.rows) for t in tables))
    return tables


LOADERS: Dict[str, Callable[[Sequence[Sequence[Any]]], Any]] = {
    "discounts": load_discounts,
    "sessions": load_sessions,
    "late_cancellations": load_late_cancellations,
    "new_clients": load_new_clients,
}


# ---------------- Snapshots ----------------
class SnapshotStore:
    """Holds the most recent complete grid per source.

    A snapshot is replaced only once its fetch has returned in full; a failed or
    cancelled refresh leaves the previous one in place.
    """

    def __init__(self, fetcher: GridFetcher = fetch_grid) -> None:
        self._fetcher = fetcher
        self._snapshots: Dict[str, Grid] = {}

    def get(self, source_id: str) -> Optional[Grid]:
        return self._snapshots.get(source_id)

    def put(self, source_id: str, grid: Sequence[Sequence[Any]]) -> Grid:
        frozen = freeze_grid(grid)
        self._snapshots[source_id] = frozen
        return frozen

    async def refresh(self, source_id: str) -> Grid:
        grid = await self._fetcher(source_id)
        return self.put(source_id, grid)

    async def ensure(self, source_id: str) -> Grid:
        cached = self.get(source_id)
        if cached is not None:
            return cached
        return await self.refresh(source_id)

    def clear(self) -> None:
        self._snapshots = {}


# ---------------- Public API ----------------
def load_dashboard_data(grids: Dict[str, Sequence[Sequence[Any]]]) -> Dict[str, Any]:
    """Parse and normalize whichever source grids are present."""
    data_ctx: Dict[str, Any] = {}
    for source, grid in grids.items():
        loader = LOADERS.get(source)
        if loader is not None:
            data_ctx[source] = loader(grid)
    return data_ctx


def prepare_context(filters: dict | FilterSpec, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    spec = filters if isinstance(filters, FilterSpec) else normalize_filters(filters)
    ctx: Dict[str, Any] = dict(data_ctx)
    ctx["filters"] = spec

    discounts: pd.DataFrame = data_ctx.get("discounts", pd.DataFrame())
    sessions: pd.DataFrame = data_ctx.get("sessions", pd.DataFrame())
    new_clients: pd.DataFrame = data_ctx.get("new_clients", pd.DataFrame())

    ctx["filtered_discounts"] = apply_filters(discounts, spec, date_col="payment_date")
    ctx["filtered_sessions"] = apply_filters(sessions, spec, date_col="date")
    ctx["filtered_new_clients"] = apply_filters(new_clients, spec, date_col="first_visit_date")
    ctx["late_cancellation_tables"] = data_ctx.get("late_cancellations", [])
    return ctx
