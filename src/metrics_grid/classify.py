"""Quadrant classification and conditional colouring for metric cells.

A cell is bucketed on two independent axes against the dataset averages:
traffic (sessions, spend, cost) and quality (conversion rate, ROAS, value per
cost). Both comparisons are inclusive, so a value exactly at the average
counts as high/good.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Mapping, Protocol

from metrics_grid.thresholds import Thresholds, is_number

Direction = Literal["up", "down"]


class Quadrant(str, Enum):
    HIGH_TRAFFIC_HIGH_CONV = "high_traffic_high_conv"
    HIGH_TRAFFIC_LOW_CONV = "high_traffic_low_conv"
    LOW_TRAFFIC_HIGH_CONV = "low_traffic_high_conv"
    LOW_TRAFFIC_LOW_CONV = "low_traffic_low_conv"


@dataclass(frozen=True)
class CellStyle:
    background: str
    text: str
    indicator: str
    traffic_direction: Direction | None = None
    quality_direction: Direction | None = None
    excel_fill: str | None = None


QUADRANT_STYLES: dict[Quadrant, CellStyle] = {
    Quadrant.HIGH_TRAFFIC_HIGH_CONV: CellStyle(
        background="#D7FFDF",
        text="#047857",
        indicator="positive",
        traffic_direction="up",
        quality_direction="up",
        excel_fill="BBFFD3",
    ),
    Quadrant.HIGH_TRAFFIC_LOW_CONV: CellStyle(
        background="#EFF6FF",
        text="#1E3A8A",
        indicator="neutral-up",
        traffic_direction="up",
        quality_direction="down",
        excel_fill="BBE5FF",
    ),
    Quadrant.LOW_TRAFFIC_HIGH_CONV: CellStyle(
        background="#FFFBEB",
        text="#B45309",
        indicator="neutral-down",
        traffic_direction="down",
        quality_direction="up",
        excel_fill="FFF4BB",
    ),
    Quadrant.LOW_TRAFFIC_LOW_CONV: CellStyle(
        background="#FFF1F2",
        text="#BE123C",
        indicator="negative",
        traffic_direction="down",
        quality_direction="down",
        excel_fill="FFBBBB",
    ),
}

NEUTRAL_STYLE = CellStyle(background="#FFFFFF", text="#0F172A", indicator="")

ABOVE_AVERAGE_STYLE = CellStyle(background="#DCFCE7", text="#166534", indicator="above")
BELOW_AVERAGE_STYLE = CellStyle(background="#FEF2F2", text="#991B1B", indicator="below")
AT_AVERAGE_STYLE = CellStyle(background="#FEF9C3", text="#A16207", indicator="equal")

AVERAGE_EPSILON = 0.0001


def classify(traffic: float, quality: float, thresholds: Thresholds) -> Quadrant:
    high_traffic = traffic >= thresholds.avg_traffic
    good_quality = quality >= thresholds.avg_quality
    if high_traffic and good_quality:
        return Quadrant.HIGH_TRAFFIC_HIGH_CONV
    if high_traffic:
        return Quadrant.HIGH_TRAFFIC_LOW_CONV
    if good_quality:
        return Quadrant.LOW_TRAFFIC_HIGH_CONV
    return Quadrant.LOW_TRAFFIC_LOW_CONV


def quadrant_style(traffic: float, quality: float, thresholds: Thresholds) -> CellStyle:
    return QUADRANT_STYLES[classify(traffic, quality, thresholds)]


def compare_to_average(value: float, average: float) -> CellStyle:
    """Single-axis colouring used by funnel tables (add-to-cart, checkout, purchase rates)."""
    if abs(value - average) < AVERAGE_EPSILON:
        return AT_AVERAGE_STYLE
    if value > average:
        return ABOVE_AVERAGE_STYLE
    return BELOW_AVERAGE_STYLE


class CellClassifier(Protocol):
    def __call__(self, entry: Mapping[str, Any], thresholds: Thresholds) -> CellStyle | None: ...


def quadrant_classifier(entry: Mapping[str, Any], thresholds: Thresholds) -> CellStyle | None:
    """Style a monthly entry from its own pair values; ``None`` when either is missing."""
    traffic = entry.get(thresholds.pair.traffic)
    quality = entry.get(thresholds.pair.quality)
    if not (is_number(traffic) and is_number(quality)):
        return None
    return quadrant_style(float(traffic), float(quality), thresholds)


def no_classifier(entry: Mapping[str, Any], thresholds: Thresholds) -> CellStyle | None:
    return None


def indicator_for(style: CellStyle, metric: str, thresholds: Thresholds) -> Direction | None:
    if metric == thresholds.pair.traffic:
        return style.traffic_direction
    if metric == thresholds.pair.quality:
        return style.quality_direction
    return None
