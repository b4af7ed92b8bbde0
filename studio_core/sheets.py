"""Split a sheet that stacks several pivot tables into independent logical tables.

The late-cancellations export places a by-location table, a by-class table, a
by-trainer table (and so on) one under another in a single tab. Tables are told
apart by their header rows; blank rows and section titles in between are noise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from studio_core.coerce import as_text, parse_grid_numeric


logger = logging.getLogger(__name__)

HEADER_SENTINEL = "Location"
TITLE_MARKERS = ("Late Cancellations", "Members with >1")
GRAND_TOTAL = "Grand Total"


class TableType(str, Enum):
    BY_LOCATION = "by-location"
    BY_CLASS = "by-class"
    BY_TRAINER = "by-trainer"
    BY_PRODUCT = "by-product"


TABLE_TYPE_BY_SECOND_HEADER = {
    "Cleaned Class": TableType.BY_CLASS,
    "Trainer Name": TableType.BY_TRAINER,
    "Cleaned Product": TableType.BY_PRODUCT,
}


@dataclass(frozen=True)
class TableRow:
    location: str
    label: Optional[str]
    values: Dict[str, float]


@dataclass(frozen=True)
class LogicalTable:
    table_type: TableType
    headers: Tuple[str, ...]
    rows: List[TableRow] = field(default_factory=list)
    data_rows: List[Tuple[Any, ...]] = field(default_factory=list)

    @property
    def value_columns(self) -> List[str]:
        return [h for h in self.headers[value_start(self.table_type):] if h]


def table_type_for(headers: Sequence[str]) -> TableType:
    if len(headers) < 2:
        return TableType.BY_LOCATION
    return TABLE_TYPE_BY_SECOND_HEADER.get(headers[1], TableType.BY_LOCATION)


def value_start(table_type: TableType) -> int:
    # labeled tables spend column 1 on the class/trainer/product name
    return 1 if table_type is TableType.BY_LOCATION else 2


def is_header_row(cells: Sequence[str]) -> bool:
    return cells[0] == HEADER_SENTINEL or HEADER_SENTINEL in cells


def is_title_row(cells: Sequence[str]) -> bool:
    first = cells[0]
    return first == GRAND_TOTAL or any(marker in first for marker in TITLE_MARKERS)


def parse_tables(grid: Sequence[Sequence[Any]]) -> List[LogicalTable]:
    """Recover every logical table from ``grid`` in encounter order."""
    if not grid or len(grid) < 2:
        return []

    tables: List[LogicalTable] = []
    current: Optional[LogicalTable] = None

    for raw in grid:
        if not raw:
            continue
        cells = [as_text(c) for c in raw]
        if not cells[0]:
            continue

        if is_header_row(cells):
            headers = tuple(cells)
            current = LogicalTable(table_type=table_type_for(headers), headers=headers)
            tables.append(current)
            continue

        if is_title_row(cells) or current is None:
            continue

        label = None
        if current.table_type is not TableType.BY_LOCATION and len(cells) > 1 and cells[1]:
            label = cells[1]

        values: Dict[str, float] = {}
        for j in range(value_start(current.table_type), len(current.headers)):
            header = current.headers[j]
            if header:
                values[header] = parse_grid_numeric(raw[j] if j < len(raw) else None)

        current.rows.append(TableRow(location=cells[0], label=label, values=values))
        current.data_rows.append(tuple(raw))

    logger.debug("Parsed %d tables (%d data rows)", len(tables), sum(len(t.rows) for t in tables))
    return tables


def tables_to_frame(tables: Sequence[LogicalTable]) -> pd.DataFrame:
    """Flatten parsed tables into one long frame, one line per data row."""
    records: List[Dict[str, Any]] = []
    for table in tables:
        for row in table.rows:
            records.append(
                {
                    "table_type": table.table_type.value,
                    "location": row.location,
                    "label": row.label or "",
                    **row.values,
                }
            )
    if not records:
        return pd.DataFrame(columns=["table_type", "location", "label"])
    return pd.DataFrame(records)
