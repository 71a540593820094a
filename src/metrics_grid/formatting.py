from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal

CellKind = Literal["spend", "percentage", "sessions", "default"]

PLACEHOLDER = "—"


@dataclass(frozen=True)
class LocaleGrouping:
    separator: str
    # Size of the first (rightmost) group, then of every following group.
    primary: int = 3
    secondary: int = 3


LOCALE_GROUPINGS: dict[str, LocaleGrouping] = {
    "en-US": LocaleGrouping(separator=","),
    "en-GB": LocaleGrouping(separator=","),
    "en-IN": LocaleGrouping(separator=",", primary=3, secondary=2),
    "de-DE": LocaleGrouping(separator="."),
    "fr-FR": LocaleGrouping(separator=" "),
}
_LANGUAGE_DEFAULTS = {"en": "en-US", "de": "de-DE", "fr": "fr-FR"}

DEFAULT_LOCALE = "en-US"


def resolve_locale(locale: str | None) -> LocaleGrouping:
    if not locale:
        return LOCALE_GROUPINGS[DEFAULT_LOCALE]
    normalized = locale.replace("_", "-")
    if normalized in LOCALE_GROUPINGS:
        return LOCALE_GROUPINGS[normalized]
    language = normalized.split("-", 1)[0].lower()
    return LOCALE_GROUPINGS[_LANGUAGE_DEFAULTS.get(language, DEFAULT_LOCALE)]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def group_digits(value: int, locale: str | None = None) -> str:
    grouping = resolve_locale(locale)
    sign = "-" if value < 0 else ""
    digits = str(abs(value))
    if len(digits) <= grouping.primary:
        return sign + digits
    groups = [digits[-grouping.primary :]]
    digits = digits[: -grouping.primary]
    while digits:
        groups.append(digits[-grouping.secondary :])
        digits = digits[: -grouping.secondary]
    return sign + grouping.separator.join(reversed(groups))


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_number(value: Any, kind: CellKind = "default", locale: str | None = None) -> str:
    """Render a cell value. Non-numeric values pass through unchanged as text."""
    if value is None:
        return PLACEHOLDER
    if not _is_numeric(value):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return PLACEHOLDER
    if kind in ("spend", "sessions"):
        return group_digits(round_half_up(float(value)), locale)
    if kind == "percentage":
        return f"{float(value):.2f}%"
    return f"{float(value):.2f}"


def cell_kind_for_metric(metric: str) -> CellKind:
    lowered = metric.lower()
    if metric == "Sessions":
        return "sessions"
    if "rate" in lowered:
        return "percentage"
    if "/" in metric:
        return "default"
    if "spend" in lowered or "cost" in lowered:
        return "spend"
    return "default"


def cell_kind_for_column(column: str) -> CellKind:
    """Aggregate columns are matched by substring, as their headers vary by report."""
    if "Sessions" in column:
        return "sessions"
    if "Rate" in column:
        return "percentage"
    return "default"


def format_count(value: Any, locale: str | None = None) -> str:
    if _is_numeric(value) and float(value).is_integer():
        return group_digits(int(value), locale)
    return format_number(value, "default", locale)
