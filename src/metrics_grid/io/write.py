from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from metrics_grid.grid import GridView
from metrics_grid.io.read import ReportPayload


def write_payload(payload: ReportPayload, path: Path) -> Path:
    return write_summary(payload.model_dump(by_alias=True), path)


def write_view(view: GridView, path: Path) -> Path:
    return write_summary(view.to_dict(), path)


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    return path
