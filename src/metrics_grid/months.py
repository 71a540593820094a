"""Helpers for the ``YYYYMM`` month codes carried by embedded monthly series.

Month codes are a four-digit year followed by a one- or two-digit month with
no separator (``"202503"``, ``"20253"``). Display labels use ``Mon-YYYY``.
"""

from __future__ import annotations

import re
from typing import Any

MONTH_ABBREVIATIONS = [
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
]

_MONTH_CODE_PATTERN = re.compile(r"^(\d{4})(\d{1,2})$")
_LABEL_PATTERN = re.compile(r"^([A-Za-z]{3})-(\d{4})$")


def parse_month_code(code: Any) -> tuple[int, int] | None:
    """Return ``(year, month)`` for a valid month code, otherwise ``None``."""
    if code is None or isinstance(code, bool):
        return None
    text = str(code).strip()
    match = _MONTH_CODE_PATTERN.match(text)
    if match is None:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def month_label(code: Any) -> str | None:
    parsed = parse_month_code(code)
    if parsed is None:
        return None
    year, month = parsed
    return f"{MONTH_ABBREVIATIONS[month - 1]}-{year}"


def parse_month_label(label: str) -> tuple[int, int] | None:
    match = _LABEL_PATTERN.match(label.strip())
    if match is None:
        return None
    abbreviation = match.group(1).title()
    if abbreviation not in MONTH_ABBREVIATIONS:
        return None
    return int(match.group(2)), MONTH_ABBREVIATIONS.index(abbreviation) + 1


def label_to_month_code(label: str) -> str | None:
    parsed = parse_month_label(label)
    if parsed is None:
        return None
    year, month = parsed
    return f"{year}{month:02d}"


def normalize_month_code(code: Any) -> str | None:
    """Canonical zero-padded form, so ``"20253"`` and ``"202503"`` compare equal."""
    parsed = parse_month_code(code)
    if parsed is None:
        return None
    year, month = parsed
    return f"{year}{month:02d}"


def month_sort_key(label: str) -> tuple[int, int]:
    parsed = parse_month_label(label)
    if parsed is None:
        return (0, 0)
    return parsed
