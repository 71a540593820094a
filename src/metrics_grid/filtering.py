from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Literal, Sequence

from metrics_grid.columns import Row

SortDirection = Literal["asc", "desc"]

DATE_COLUMN = "Date"


def is_filter_active(filter_values: Sequence[str] | None) -> bool:
    return filter_values is not None


def apply_filter(
    rows: Sequence[Row],
    primary_column: str,
    filter_values: Sequence[str] | None,
) -> list[Row]:
    """Filter on the primary column.

    ``None`` means no filter is active and every row passes. An empty sequence
    is an active filter that nothing matches, so zero rows pass.
    """
    if filter_values is None:
        return list(rows)
    if len(filter_values) == 0:
        return []
    allowed = {str(value) for value in filter_values}
    return [row for row in rows if str(row.get(primary_column)) in allowed]


def parse_sort_value(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        parsed = float(value)
    elif not value:
        return 0.0
    else:
        try:
            parsed = float(str(value).replace("%", "").replace(",", "").strip())
        except ValueError:
            return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def parse_day_month_year(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%d-%m-%Y")
    except ValueError:
        return None


def sort_rows(rows: Iterable[Row], column: str, direction: SortDirection = "asc") -> list[Row]:
    reverse = direction == "desc"
    materialized = list(rows)
    if column == DATE_COLUMN:
        dated = [row for row in materialized if parse_day_month_year(row.get(column)) is not None]
        undated = [row for row in materialized if parse_day_month_year(row.get(column)) is None]
        dated.sort(key=lambda row: parse_day_month_year(row.get(column)), reverse=reverse)
        return dated + undated
    return sorted(materialized, key=lambda row: parse_sort_value(row.get(column)), reverse=reverse)


@dataclass
class SortState:
    sortable_columns: frozenset[str] | None = None
    column: str | None = None
    direction: SortDirection = "asc"
    enabled: bool = field(default=True)

    def can_sort(self, column: str) -> bool:
        if not self.enabled:
            return False
        return self.sortable_columns is None or column in self.sortable_columns

    def toggle(self, column: str) -> None:
        if not self.can_sort(column):
            return
        if self.column == column:
            self.direction = "desc" if self.direction == "asc" else "asc"
        else:
            self.column = column
            self.direction = "asc"

    def apply(self, rows: Sequence[Row]) -> list[Row]:
        if not self.enabled or self.column is None:
            return list(rows)
        return sort_rows(rows, self.column, self.direction)
