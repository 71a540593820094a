from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import pandas as pd

from metrics_grid.columns import DEFAULT_MONTHLY_KEY, Row, monthly_entries
from metrics_grid.formatting import format_number


@dataclass(frozen=True)
class MetricPair:
    """Traffic/quality metric pair used for averages and quadrant classification."""

    traffic: str
    quality: str


SESSIONS_CONV_RATE = MetricPair(traffic="Sessions", quality="Conv. Rate")
SPEND_ROAS = MetricPair(traffic="Spend", quality="Purchase ROAS")
COST_VALUE_PER_COST = MetricPair(traffic="Cost", quality="Conv. Value/ Cost")

METRIC_PAIRS: dict[str, MetricPair] = {
    "sessions_conv_rate": SESSIONS_CONV_RATE,
    "spend_roas": SPEND_ROAS,
    "cost_value_per_cost": COST_VALUE_PER_COST,
}

# Row-level aggregate columns paired the same way as the monthly metrics.
SUMMARY_COLUMN_PAIRS: dict[MetricPair, MetricPair] = {
    SESSIONS_CONV_RATE: MetricPair(traffic="Total Sessions", quality="Avg Conv. Rate"),
    SPEND_ROAS: MetricPair(traffic="Total Spend", quality="Total Purchase ROAS"),
    COST_VALUE_PER_COST: MetricPair(traffic="Total Cost", quality="Conv. Value / Cost"),
}


@dataclass(frozen=True)
class Thresholds:
    pair: MetricPair
    avg_traffic: float
    avg_quality: float
    samples: int


def resolve_metric_pair(name: str) -> MetricPair:
    try:
        return METRIC_PAIRS[name]
    except KeyError as exc:
        raise ValueError(
            f"Unknown metric pair {name!r}; expected one of {sorted(METRIC_PAIRS)}"
        ) from exc


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _paired_samples(records: Iterable[Mapping[str, Any]], pair: MetricPair) -> pd.DataFrame:
    samples = [
        (float(record[pair.traffic]), float(record[pair.quality]))
        for record in records
        if is_number(record.get(pair.traffic)) and is_number(record.get(pair.quality))
    ]
    return pd.DataFrame(samples, columns=["traffic", "quality"], dtype="float64")


def _thresholds_from_frame(frame: pd.DataFrame, pair: MetricPair) -> Thresholds:
    if frame.empty:
        return Thresholds(pair=pair, avg_traffic=0.0, avg_quality=0.0, samples=0)
    return Thresholds(
        pair=pair,
        avg_traffic=float(frame["traffic"].mean()),
        avg_quality=float(frame["quality"].mean()),
        samples=int(len(frame)),
    )


def compute_thresholds(
    rows: Iterable[Row],
    pair: MetricPair = SESSIONS_CONV_RATE,
    monthly_key: str = DEFAULT_MONTHLY_KEY,
) -> Thresholds:
    """Average each metric of ``pair`` over all monthly entries where both are numeric."""
    entries = (entry for row in rows for entry in monthly_entries(row, monthly_key))
    return _thresholds_from_frame(_paired_samples(entries, pair), pair)


def compute_summary_thresholds(rows: Iterable[Row], pair: MetricPair) -> Thresholds:
    """Same rule as :func:`compute_thresholds`, over row-level aggregate columns."""
    return _thresholds_from_frame(_paired_samples(rows, pair), pair)


def thresholds_by_column(
    thresholds: Thresholds, summary: Thresholds | None = None
) -> dict[str, float]:
    """Averages keyed by the monthly metric names and their aggregate column names.

    Aggregate columns take the averages of ``summary`` when given, so a header
    states the same average its cells are coloured against.
    """
    averages = {
        thresholds.pair.traffic: thresholds.avg_traffic,
        thresholds.pair.quality: thresholds.avg_quality,
    }
    if summary is not None:
        averages[summary.pair.traffic] = summary.avg_traffic
        averages[summary.pair.quality] = summary.avg_quality
        return averages
    aggregate = SUMMARY_COLUMN_PAIRS.get(thresholds.pair)
    if aggregate is not None:
        averages[aggregate.traffic] = thresholds.avg_traffic
        averages[aggregate.quality] = thresholds.avg_quality
    return averages


def compute_column_averages(rows: Iterable[Row], columns: Iterable[str]) -> dict[str, float]:
    """Mean of each column over the rows where it holds a number; ``0.0`` without samples."""
    materialized = list(rows)
    averages: dict[str, float] = {}
    for column in columns:
        values = pd.Series(
            [float(row[column]) for row in materialized if is_number(row.get(column))],
            dtype="float64",
        )
        averages[column] = 0.0 if values.empty else float(values.mean())
    return averages


def _is_traffic_column(column: str) -> bool:
    lowered = column.lower()
    return any(token in lowered for token in ("sessions", "spend")) or lowered in {
        "cost",
        "total cost",
    }


def header_annotation(column: str, averages: Mapping[str, float]) -> str:
    """``(avg: …)`` suffix for columns that have a computed average."""
    if column not in averages:
        return ""
    average = averages[column]
    if _is_traffic_column(column):
        return f"(avg: {format_number(average, 'sessions')})"
    if "rate" in column.lower():
        return f"(avg: {average:.2f}%)"
    return f"(avg: {average:.2f})"
