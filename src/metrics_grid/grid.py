"""Consolidated report grid.

One configurable grid replaces the per-report table copies: column layout,
sorting on/off, paginated, chunked or full rendering, and a pluggable cell
classifier. The grid holds no write-back state; every derived piece (columns,
thresholds, filter, sort, page) is recomputed from the rows it was last given.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Mapping, Sequence

from metrics_grid.classify import (
    NEUTRAL_STYLE,
    CellClassifier,
    compare_to_average,
    indicator_for,
    quadrant_classifier,
)
from metrics_grid.columns import (
    DEFAULT_MONTHLY_KEY,
    ColumnDefinition,
    Row,
    build_columns,
    monthly_entries,
)
from metrics_grid.config import GridConfig
from metrics_grid.filtering import DATE_COLUMN, SortState, apply_filter
from metrics_grid.formatting import (
    PLACEHOLDER,
    cell_kind_for_column,
    cell_kind_for_metric,
    format_count,
    format_number,
)
from metrics_grid.months import normalize_month_code
from metrics_grid.pagination import DEFAULT_CHUNK_SIZE, ChunkLoader, Paginator
from metrics_grid.resize import ColumnResizeController
from metrics_grid.thresholds import (
    SESSIONS_CONV_RATE,
    SUMMARY_COLUMN_PAIRS,
    MetricPair,
    Thresholds,
    compute_column_averages,
    compute_summary_thresholds,
    compute_thresholds,
    header_annotation,
    resolve_metric_pair,
    thresholds_by_column,
)

LOGGER = logging.getLogger(__name__)

GridMode = Literal["paginate", "chunked", "full"]

EMPTY_MESSAGE = "No data to display"
EMPTY_FILTERED_MESSAGE = "Oops! No data available for this category"
FILTERED_BADGE = "Filtered"

# Secondary detail lines shown under a monthly cell when the entry carries them.
MONTH_DETAIL_FIELDS: tuple[tuple[str, str], ...] = (
    ("Purchases", "Purchases"),
    ("Clicks", "clicks"),
    ("Purchase Conversion Value", "PCV"),
)
SUMMARY_DETAIL_FIELDS: dict[str, tuple[str, str]] = {
    "Avg Conv. Rate": ("Total Purchases", "Total Purchases"),
    "Conv. Value / Cost": ("Total Conv. Value", "Total Conv. Value"),
    "Total Purchase ROAS": ("Total PCV", "PCV"),
}


@dataclass
class GridOptions:
    primary_column: str
    secondary_columns: list[str] = field(default_factory=list)
    monthly_key: str = DEFAULT_MONTHLY_KEY
    metric_pair: MetricPair = SESSIONS_CONV_RATE
    locale: str = "en-US"
    mode: GridMode = "paginate"
    sortable: bool = False
    page_size: str = "50"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    classifier: CellClassifier = quadrant_classifier
    # Secondary columns coloured above/below their own column mean (funnel rates).
    average_columns: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class HeaderCell:
    key: str
    label: str
    kind: str
    align: str
    width: float
    min_width: int
    max_width: int | None
    annotation: str = ""
    subtitle: str = ""
    badge: str = ""
    sortable: bool = False
    sort_direction: str | None = None


@dataclass(frozen=True)
class Cell:
    text: str
    align: str
    background: str = NEUTRAL_STYLE.background
    color: str = NEUTRAL_STYLE.text
    lines: tuple[str, ...] = ()
    details: tuple[str, ...] = ()
    indicator: str = ""


@dataclass(frozen=True)
class GridRow:
    key: str
    cells: tuple[Cell, ...]


@dataclass(frozen=True)
class GridView:
    headers: tuple[HeaderCell, ...]
    rows: tuple[GridRow, ...]
    mode: str
    total_rows: int
    unfiltered_rows: int
    filter_active: bool
    empty_message: str | None
    footer_label: str | None
    page: int
    total_pages: int
    has_previous: bool
    has_next: bool
    can_load_more: bool
    thresholds: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ReportGrid:
    def __init__(
        self,
        rows: Sequence[Row],
        options: GridOptions,
        filter_values: Sequence[str] | None = None,
    ) -> None:
        self.options = options
        self.filter_values: list[str] | None = (
            None if filter_values is None else list(filter_values)
        )
        self.paginator = Paginator(page_size=options.page_size)
        self.sort = SortState(
            sortable_columns=frozenset([*options.secondary_columns, DATE_COLUMN]),
            enabled=options.sortable,
        )
        self.rows: list[Row] = []
        self.columns: list[ColumnDefinition] = []
        self.resize = ColumnResizeController([])
        self.chunks: ChunkLoader[Row] = ChunkLoader([], chunk_size=options.chunk_size)
        self.set_rows(rows)

    def set_rows(self, rows: Sequence[Row]) -> None:
        self.rows = list(rows)
        self.thresholds = compute_thresholds(
            self.rows, self.options.metric_pair, self.options.monthly_key
        )
        summary_pair = SUMMARY_COLUMN_PAIRS.get(self.options.metric_pair)
        self.summary_thresholds: Thresholds | None = (
            compute_summary_thresholds(self.rows, summary_pair) if summary_pair else None
        )
        self.column_averages = compute_column_averages(self.rows, self.options.average_columns)
        self.paginator.page = 1
        self._rederive()

    def _rederive(self) -> None:
        self.filtered = apply_filter(
            self.rows, self.options.primary_column, self.filter_values
        )
        self.sorted = self.sort.apply(self.filtered)
        self.columns = build_columns(
            self.options.primary_column,
            self.options.secondary_columns,
            self.filtered,
            self.options.monthly_key,
        )
        self.resize.sync_columns(self.columns)
        self.chunks.reset(self.sorted)

    def set_filter(self, filter_values: Sequence[str] | None) -> None:
        self.filter_values = None if filter_values is None else list(filter_values)
        self.paginator.set_filter(self.filter_values)
        self._rederive()

    def set_page_size(self, page_size: str) -> None:
        self.paginator.set_page_size(page_size)

    def go_to_page(self, page: int) -> int:
        return self.paginator.go_to(page, len(self.sorted))

    def toggle_sort(self, column: str) -> None:
        self.sort.toggle(column)
        self.sorted = self.sort.apply(self.filtered)
        self.chunks.reset(self.sorted)

    def load_more(self) -> int:
        return len(self.chunks.load_more())

    def visible_rows(self) -> list[Row]:
        if self.options.mode == "full":
            return list(self.sorted)
        if self.options.mode == "chunked":
            return list(self.chunks.loaded)
        return self.paginator.page_slice(self.sorted)

    def _header(
        self,
        column: ColumnDefinition,
        index: int,
        averages: Mapping[str, float],
    ) -> HeaderCell:
        badge = ""
        subtitle = ""
        annotation = ""
        if column.kind == "primary" and self.filter_values:
            badge = FILTERED_BADGE
        elif column.kind == "secondary":
            annotation = header_annotation(column.key, averages)
        elif column.kind == "monthly":
            pair = self.options.metric_pair
            subtitle = f"{pair.traffic} / {pair.quality}"
        sortable = column.kind != "monthly" and self.sort.can_sort(column.key)
        return HeaderCell(
            key=column.key,
            label=column.header,
            kind=column.kind,
            align=column.align,
            width=self.resize.widths[index],
            min_width=column.min_width,
            max_width=column.max_width,
            annotation=annotation,
            subtitle=subtitle,
            badge=badge,
            sortable=sortable,
            sort_direction=self.sort.direction if self.sort.column == column.key else None,
        )

    def _primary_cell(self, row: Row, column: ColumnDefinition) -> Cell:
        value = row.get(column.key)
        text = "" if value is None else str(value)
        return Cell(text=text, align=column.align)

    def _summary_cell(self, row: Row, column: ColumnDefinition) -> Cell:
        value = row.get(column.key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return Cell(text="", align=column.align)
        text = format_number(value, cell_kind_for_column(column.key), self.options.locale)
        details: tuple[str, ...] = ()
        detail = SUMMARY_DETAIL_FIELDS.get(column.key)
        if detail is not None and detail[0] in row:
            details = (f"{detail[1]}: {format_count(row[detail[0]], self.options.locale)}",)
        if column.key in self.column_averages:
            average_style = compare_to_average(float(value), self.column_averages[column.key])
            return Cell(
                text=text,
                align=column.align,
                background=average_style.background,
                color=average_style.text,
                details=details,
                indicator=average_style.indicator,
            )
        style = None
        if self.summary_thresholds is not None and column.key in (
            self.summary_thresholds.pair.traffic,
            self.summary_thresholds.pair.quality,
        ):
            style = self.options.classifier(row, self.summary_thresholds)
        if style is None:
            return Cell(text=text, align=column.align, details=details)
        return Cell(
            text=text,
            align=column.align,
            background=style.background,
            color=style.text,
            details=details,
            indicator=indicator_for(style, column.key, self.summary_thresholds) or "",
        )

    def _month_entry(self, row: Row, month_code: str | None) -> Mapping[str, Any] | None:
        if month_code is None:
            return None
        for entry in monthly_entries(row, self.options.monthly_key):
            if normalize_month_code(entry.get("Month")) == month_code:
                return entry
        return None

    def _month_cell(self, row: Row, column: ColumnDefinition) -> Cell:
        entry = self._month_entry(row, column.month_code)
        if entry is None:
            return Cell(text=PLACEHOLDER, align=column.align, lines=(PLACEHOLDER, PLACEHOLDER))
        pair = self.options.metric_pair
        locale = self.options.locale
        traffic_text = format_number(
            entry.get(pair.traffic), cell_kind_for_metric(pair.traffic), locale
        )
        quality_text = format_number(
            entry.get(pair.quality), cell_kind_for_metric(pair.quality), locale
        )
        details = tuple(
            f"{label}: {format_count(entry[field_name], locale)}"
            for field_name, label in MONTH_DETAIL_FIELDS
            if entry.get(field_name) is not None
        )
        style = self.options.classifier(entry, self.thresholds) or NEUTRAL_STYLE
        return Cell(
            text=traffic_text,
            align=column.align,
            background=style.background,
            color=style.text,
            lines=(traffic_text, quality_text),
            details=details,
            indicator=style.indicator,
        )

    def _cell(self, row: Row, column: ColumnDefinition) -> Cell:
        if column.kind == "primary":
            return self._primary_cell(row, column)
        if column.kind == "secondary":
            return self._summary_cell(row, column)
        return self._month_cell(row, column)

    def view(self) -> GridView:
        averages = {
            **thresholds_by_column(self.thresholds, self.summary_thresholds),
            **self.column_averages,
        }
        headers = tuple(
            self._header(column, index, averages) for index, column in enumerate(self.columns)
        )
        visible = self.visible_rows()
        rows = tuple(
            GridRow(
                key=f"{row.get(self.options.primary_column)}-{index}",
                cells=tuple(self._cell(row, column) for column in self.columns),
            )
            for index, row in enumerate(visible)
        )

        filter_active = self.filter_values is not None
        empty_message = None
        if not rows:
            empty_message = (
                EMPTY_FILTERED_MESSAGE if filter_active and not self.filtered else EMPTY_MESSAGE
            )

        total = len(self.sorted)
        paginated = self.options.mode == "paginate"
        footer_label = (
            self.paginator.range_label(total, len(self.rows), self.filter_values)
            if paginated
            else None
        )
        if self.thresholds.samples == 0 and self.rows:
            LOGGER.debug(
                "No monthly entries carry numeric %s and %s; averages default to 0",
                self.options.metric_pair.traffic,
                self.options.metric_pair.quality,
            )
        return GridView(
            headers=headers,
            rows=rows,
            mode=self.options.mode,
            total_rows=total,
            unfiltered_rows=len(self.rows),
            filter_active=filter_active,
            empty_message=empty_message,
            footer_label=footer_label,
            page=self.paginator.page if paginated else 1,
            total_pages=self.paginator.total_pages(total) if paginated else 1,
            has_previous=paginated and self.paginator.has_previous(),
            has_next=paginated and self.paginator.has_next(total),
            can_load_more=self.options.mode == "chunked" and not self.chunks.exhausted,
            thresholds=averages,
        )


def options_from_config(grid_config: GridConfig) -> GridOptions:
    mode: GridMode = grid_config.mode
    if grid_config.full_screen and mode == "paginate":
        mode = "full"
    return GridOptions(
        primary_column=grid_config.primary_column,
        secondary_columns=list(grid_config.secondary_columns),
        monthly_key=grid_config.monthly_key,
        metric_pair=resolve_metric_pair(grid_config.metric_pair),
        locale=grid_config.locale,
        mode=mode,
        sortable=grid_config.sortable,
        page_size=grid_config.page_size,
        chunk_size=grid_config.chunk_size,
        average_columns=list(grid_config.average_columns),
    )
