from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

PAGE_SIZE_OPTIONS = ("50", "100", "200", "all")
DEFAULT_CHUNK_SIZE = 30
SCROLL_LOAD_MARGIN = 100


def validate_page_size(page_size: str) -> str:
    if page_size not in PAGE_SIZE_OPTIONS:
        raise ValueError(f"page_size must be one of {PAGE_SIZE_OPTIONS}, got {page_size!r}")
    return page_size


@dataclass
class Paginator:
    page_size: str = "50"
    page: int = 1

    def __post_init__(self) -> None:
        validate_page_size(self.page_size)

    def rows_per_page(self, total_rows: int) -> int:
        if self.page_size == "all":
            return max(total_rows, 1)
        return int(self.page_size)

    def total_pages(self, total_rows: int) -> int:
        return max(1, math.ceil(total_rows / self.rows_per_page(total_rows)))

    def go_to(self, page: int, total_rows: int) -> int:
        self.page = min(max(page, 1), self.total_pages(total_rows))
        return self.page

    def set_page_size(self, page_size: str) -> None:
        self.page_size = validate_page_size(page_size)
        self.page = 1

    def set_filter(self, filter_values: Sequence[str] | None) -> None:
        self.page = 1

    def bounds(self, total_rows: int) -> tuple[int, int]:
        per_page = self.rows_per_page(total_rows)
        start = (self.page - 1) * per_page
        return start, min(start + per_page, total_rows)

    def page_slice(self, rows: Sequence[T]) -> list[T]:
        start, end = self.bounds(len(rows))
        return list(rows[start:end])

    def has_previous(self) -> bool:
        return self.page > 1

    def has_next(self, total_rows: int) -> bool:
        return self.page < self.total_pages(total_rows)

    def range_label(
        self,
        total_rows: int,
        unfiltered_total: int,
        filter_values: Sequence[str] | None = None,
    ) -> str:
        if total_rows > 0:
            start, end = self.bounds(total_rows)
            label = f"Showing {start + 1}-{end} of {total_rows} rows"
            if filter_values is not None:
                label += f" (Filtered from {unfiltered_total} total rows)"
            return label
        label = "No rows to display"
        if filter_values is not None:
            shown = ", ".join(filter_values) or "Unknown"
            label += f" (Filter: {shown}) | Total rows: {unfiltered_total}"
        return label


@dataclass
class ChunkLoader(Generic[T]):
    """Incremental loading for full-screen scrolling; loaded rows are retained."""

    rows: Sequence[T]
    chunk_size: int = DEFAULT_CHUNK_SIZE
    loaded: list[T] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.reset(self.rows)

    def reset(self, rows: Sequence[T]) -> None:
        self.rows = rows
        self.loaded = list(rows[: self.chunk_size])

    @property
    def exhausted(self) -> bool:
        return len(self.loaded) >= len(self.rows)

    def load_more(self) -> list[T]:
        start = len(self.loaded)
        chunk = list(self.rows[start : start + self.chunk_size])
        self.loaded.extend(chunk)
        return chunk


def should_load_more(
    scroll_height: float,
    scroll_top: float,
    client_height: float,
    margin: float = SCROLL_LOAD_MARGIN,
) -> bool:
    return scroll_height - scroll_top <= client_height + margin
