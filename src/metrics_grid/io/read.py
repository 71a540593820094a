from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ReportPayload(BaseModel):
    """Response shape of ``POST /api/analytics/<reportType>Report/<brandId>``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    report_type: str = Field(default="", alias="reportType")
    data: list[dict[str, Any]] = Field(default_factory=list)


def parse_payload(raw: Any) -> ReportPayload:
    # Some endpoints return the bare row list without the envelope.
    if isinstance(raw, list):
        raw = {"reportType": "", "data": raw}
    if not isinstance(raw, dict):
        raise ValueError(f"Report payload must be an object or list, got {type(raw).__name__}")
    try:
        return ReportPayload.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid report payload: {exc}") from exc


def load_payload(path: Path) -> ReportPayload:
    if path.suffix != ".json":
        raise ValueError(f"Unsupported payload file type: {path.suffix}")
    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return parse_payload(raw)
