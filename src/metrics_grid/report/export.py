"""Excel export of conversion grids.

Each data row expands into one sheet row per monthly metric. Rows for the
classified metric pair are filled with the quadrant colour of the data row's
aggregate columns, computed against the dataset-wide aggregate averages.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from metrics_grid.classify import QUADRANT_STYLES, classify
from metrics_grid.columns import DEFAULT_MONTHLY_KEY, Row, discover_months, monthly_entries
from metrics_grid.months import label_to_month_code, normalize_month_code
from metrics_grid.thresholds import Thresholds, is_number

LOGGER = logging.getLogger(__name__)

SHEET_TITLE = "Conversion Data"
METRIC_HEADER = "Metric"
HEADER_FILL = "E2E8F0"
TEXT_COLOR = "000000"

_THIN = Side(style="thin", color=TEXT_COLOR)
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)


def _month_value(row: Row, month_label: str, metric: str, monthly_key: str) -> object:
    code = label_to_month_code(month_label)
    for entry in monthly_entries(row, monthly_key):
        if normalize_month_code(entry.get("Month")) == code:
            return entry.get(metric)
    return None


def _row_fill(row: Row, thresholds: Thresholds) -> str | None:
    traffic = row.get(thresholds.pair.traffic)
    quality = row.get(thresholds.pair.quality)
    if not (is_number(traffic) and is_number(quality)):
        return None
    return QUADRANT_STYLES[classify(float(traffic), float(quality), thresholds)].excel_fill


def export_conversion_workbook(
    rows: Sequence[Row],
    primary_column: str,
    secondary_columns: Sequence[str],
    monthly_metrics: Sequence[str],
    thresholds: Thresholds,
    out_path: Path,
    *,
    months: Sequence[str] | None = None,
    monthly_key: str = DEFAULT_MONTHLY_KEY,
    classified_metrics: Sequence[str] = ("Sessions", "Conv. Rate"),
) -> Path:
    """Write the workbook and return its path.

    ``thresholds`` must be keyed by the aggregate columns (for example
    ``Total Sessions``/``Avg Conv. Rate``) since fills are decided per data row.
    """
    month_labels = list(months) if months is not None else discover_months(rows, monthly_key)
    headers = [primary_column, METRIC_HEADER, *secondary_columns, *month_labels]
    month_start = len(secondary_columns) + 3

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color=HEADER_FILL, end_color=HEADER_FILL, fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for row in rows:
        fill = _row_fill(row, thresholds)
        for metric in monthly_metrics:
            values = [row.get(primary_column), metric]
            values.extend(row.get(column) for column in secondary_columns)
            values.extend(_month_value(row, label, metric, monthly_key) for label in month_labels)
            sheet.append(values)

            sheet_row = sheet.max_row
            for column_index in range(1, len(headers) + 1):
                cell = sheet.cell(row=sheet_row, column=column_index)
                cell.font = Font(color=TEXT_COLOR)
                cell.alignment = Alignment(horizontal="right")
                cell.border = _BORDER
                if (
                    fill is not None
                    and metric in classified_metrics
                    and column_index >= month_start
                    and cell.value is not None
                ):
                    cell.fill = PatternFill(start_color=fill, end_color=fill, fill_type="solid")

    widths = [15, 10, *([15] * len(secondary_columns)), *([12] * len(month_labels))]
    for index, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    out_path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(out_path)
    LOGGER.info("Exported %d data rows to %s", len(rows), out_path)
    return out_path
