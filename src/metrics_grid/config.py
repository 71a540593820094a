from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field


class GridConfig(BaseModel):
    primary_column: str = "Channel"
    secondary_columns: list[str] = Field(
        default_factory=lambda: ["Total Sessions", "Avg Conv. Rate"]
    )
    monthly_key: str = "MonthlyData"
    monthly_metrics: list[str] = Field(default_factory=lambda: ["Sessions", "Conv. Rate"])
    average_columns: list[str] = Field(default_factory=list)
    metric_pair: Literal["sessions_conv_rate", "spend_roas", "cost_value_per_cost"] = (
        "sessions_conv_rate"
    )
    mode: Literal["paginate", "chunked", "full"] = "paginate"
    page_size: Literal["50", "100", "200", "all"] = "50"
    chunk_size: int = Field(default=30, ge=1)
    locale: str = "en-US"
    sortable: bool = False
    full_screen: bool = False


class ApiConfig(BaseModel):
    base_url: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class OutputsConfig(BaseModel):
    html: bool = True
    excel: bool = True
    view_json: bool = False


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    grid: GridConfig = Field(default_factory=GridConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    config.api.base_url = config.api.base_url or os.getenv("METRICS_GRID_API_URL")
    return config
