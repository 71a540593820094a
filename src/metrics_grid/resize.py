from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from metrics_grid.columns import ColumnDefinition, column_keys


def clamp(value: float, minimum: float, maximum: float | None = None) -> float:
    if maximum is not None:
        return min(max(value, minimum), maximum)
    return max(value, minimum)


@dataclass(frozen=True)
class DragState:
    index: int
    start_x: float
    start_width: float


class ColumnResizeController:
    """Per-session column widths with drag-to-resize clamped to each column's bounds."""

    def __init__(self, columns: Sequence[ColumnDefinition]) -> None:
        self.columns: list[ColumnDefinition] = list(columns)
        self.widths: list[float] = [float(column.width) for column in self.columns]
        self.drag: DragState | None = None

    @property
    def resizing_index(self) -> int | None:
        return self.drag.index if self.drag is not None else None

    def sync_columns(self, columns: Sequence[ColumnDefinition]) -> bool:
        """Adopt a new column list; widths reset only when the key set changes."""
        changed = column_keys(columns) != column_keys(self.columns)
        self.columns = list(columns)
        if changed:
            self.widths = [float(column.width) for column in self.columns]
            self.drag = None
        return changed

    def begin_drag(self, index: int, x: float) -> DragState:
        if not 0 <= index < len(self.columns):
            raise IndexError(f"column index {index} out of range")
        self.drag = DragState(index=index, start_x=x, start_width=self.widths[index])
        return self.drag

    def drag_to(self, x: float) -> float | None:
        if self.drag is None:
            return None
        column = self.columns[self.drag.index]
        width = clamp(
            self.drag.start_width + (x - self.drag.start_x),
            column.min_width,
            column.max_width,
        )
        self.widths[self.drag.index] = width
        return width

    def end_drag(self) -> None:
        self.drag = None

    def total_width(self) -> float:
        return sum(self.widths)

    def fit_to(self, container_width: float) -> list[float]:
        self.widths = fit_widths(self.columns, container_width)
        return self.widths


def fit_widths(columns: Sequence[ColumnDefinition], container_width: float) -> list[float]:
    """Scale default widths to fill ``container_width`` without dropping below minimums.

    When even the minimum widths do not fit, the minimums are scaled down
    proportionally instead.
    """
    defaults = [float(column.width) for column in columns]
    minimums = [float(column.min_width) for column in columns]
    total_default = sum(defaults)
    if not columns or container_width <= 0 or total_default <= 0:
        return defaults

    total_minimum = sum(minimums)
    if total_minimum > container_width:
        factor = container_width / total_minimum
        return [width * factor for width in minimums]

    factor = container_width / total_default
    widths = [max(width * factor, minimum) for width, minimum in zip(defaults, minimums)]

    # Each shrinking pass either lands on the target or pins a column at its minimum.
    for _ in range(len(widths) + 1):
        difference = container_width - sum(widths)
        if abs(difference) <= 0.1:
            break
        if difference > 0:
            flexible = list(range(len(widths)))
        else:
            flexible = [index for index, width in enumerate(widths) if width > minimums[index]]
        flexible_total = sum(widths[index] for index in flexible)
        if flexible_total <= 0:
            break
        for index in flexible:
            widths[index] = max(
                widths[index] + difference * (widths[index] / flexible_total),
                minimums[index],
            )
    return widths
