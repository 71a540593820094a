from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping

from metrics_grid.months import label_to_month_code, month_label, month_sort_key

LOGGER = logging.getLogger(__name__)

DEFAULT_MONTHLY_KEY = "MonthlyData"

ColumnKind = Literal["primary", "secondary", "monthly"]
Align = Literal["left", "right", "center"]

Row = Mapping[str, Any]


@dataclass(frozen=True)
class ColumnDefinition:
    key: str
    header: str
    width: int
    min_width: int
    max_width: int | None = None
    align: Align = "right"
    kind: ColumnKind = "secondary"
    month_code: str | None = None


PRIMARY_COLUMN_LAYOUT = {"width": 130, "min_width": 100, "max_width": 300, "align": "left"}
SECONDARY_COLUMN_LAYOUT = {"width": 130, "min_width": 100, "max_width": 200, "align": "right"}
MONTHLY_COLUMN_LAYOUT = {"width": 120, "min_width": 100, "max_width": 150, "align": "right"}


def monthly_entries(row: Row, monthly_key: str = DEFAULT_MONTHLY_KEY) -> list[Mapping[str, Any]]:
    series = row.get(monthly_key)
    if not isinstance(series, list):
        return []
    return [entry for entry in series if isinstance(entry, Mapping)]


def discover_months(rows: Iterable[Row], monthly_key: str = DEFAULT_MONTHLY_KEY) -> list[str]:
    """Distinct ``Mon-YYYY`` labels across all rows, most recent first."""
    labels: set[str] = set()
    skipped = 0
    for row in rows:
        for entry in monthly_entries(row, monthly_key):
            label = month_label(entry.get("Month"))
            if label is None:
                skipped += 1
                continue
            labels.add(label)
    if skipped:
        LOGGER.debug("Skipped %d monthly entries with missing or malformed Month", skipped)
    return sorted(labels, key=month_sort_key, reverse=True)


def build_columns(
    primary_column: str,
    secondary_columns: Iterable[str] | None,
    rows: Iterable[Row],
    monthly_key: str = DEFAULT_MONTHLY_KEY,
) -> list[ColumnDefinition]:
    columns = [
        ColumnDefinition(
            key=primary_column,
            header=primary_column,
            kind="primary",
            **PRIMARY_COLUMN_LAYOUT,
        )
    ]
    for column in secondary_columns or []:
        columns.append(
            ColumnDefinition(key=column, header=column, kind="secondary", **SECONDARY_COLUMN_LAYOUT)
        )
    for label in discover_months(rows, monthly_key):
        columns.append(
            ColumnDefinition(
                key=label,
                header=label,
                kind="monthly",
                month_code=label_to_month_code(label),
                **MONTHLY_COLUMN_LAYOUT,
            )
        )
    return columns


def column_keys(columns: Iterable[ColumnDefinition]) -> tuple[str, ...]:
    return tuple(column.key for column in columns)
