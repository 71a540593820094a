from __future__ import annotations

import json
from pathlib import Path

import yaml
from openpyxl import load_workbook
from typer.testing import CliRunner

from metrics_grid.cli import app
from metrics_grid.io.api import ReportFetchError
from metrics_grid.io.read import ReportPayload


def _write_payload(tmp_path: Path) -> Path:
    payload = {
        "reportType": "channelConversion",
        "data": [
            {
                "Channel": "Direct",
                "Total Sessions": 300,
                "Avg Conv. Rate": 2.0,
                "MonthlyData": [
                    {"Month": "202503", "Sessions": 200, "Conv. Rate": 3.0},
                    {"Month": "202502", "Sessions": 100, "Conv. Rate": 1.0},
                ],
            },
            {
                "Channel": "Organic",
                "Total Sessions": 100,
                "Avg Conv. Rate": 1.0,
                "MonthlyData": [{"Month": "202503", "Sessions": 50, "Conv. Rate": 0.5}],
            },
        ],
    }
    payload_path = tmp_path / "channel.json"
    payload_path.write_text(json.dumps(payload), encoding="utf-8")
    return payload_path


def _write_config(tmp_path: Path, **outputs: bool) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump({"grid": {"sortable": True}, "outputs": outputs}), encoding="utf-8"
    )
    return config_path


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("render", "export", "fetch", "columns", "run-all"):
        assert command in result.stdout


def test_render_command_writes_html_and_view(tmp_path: Path) -> None:
    payload_path = _write_payload(tmp_path)
    config_path = _write_config(tmp_path, view_json=True)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        app,
        [
            "render",
            "--payload",
            str(payload_path),
            "--out",
            str(out_dir),
            "--config",
            str(config_path),
            "--filter",
            "Direct",
            "--sort",
            "Total Sessions",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Report written to:" in result.stdout
    html = (out_dir / "reports" / "channelConversion.html").read_text(encoding="utf-8")
    assert "Filtered from 2 total rows" in html
    view = json.loads((out_dir / "reports" / "channelConversion.view.json").read_text())
    assert view["total_rows"] == 1
    assert view["filter_active"] is True


def test_render_rejects_conflicting_filters(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        app,
        [
            "render",
            "--payload",
            str(_write_payload(tmp_path)),
            "--config",
            str(_write_config(tmp_path)),
            "--out",
            str(tmp_path / "out"),
            "--filter",
            "Direct",
            "--empty-filter",
        ],
    )

    assert result.exit_code == 2


def test_render_rejects_unknown_page_size(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        app,
        [
            "render",
            "--payload",
            str(_write_payload(tmp_path)),
            "--config",
            str(_write_config(tmp_path)),
            "--out",
            str(tmp_path / "out"),
            "--page-size",
            "25",
        ],
    )

    assert result.exit_code == 2


def test_export_command_writes_workbook(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(
        app,
        [
            "export",
            "--payload",
            str(_write_payload(tmp_path)),
            "--out",
            str(out_dir),
            "--config",
            str(_write_config(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    workbook = load_workbook(out_dir / "exports" / "channelConversion.xlsx")
    assert workbook.active.max_row == 5


def test_columns_command_lists_layout_and_averages(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        app,
        [
            "columns",
            "--payload",
            str(_write_payload(tmp_path)),
            "--config",
            str(_write_config(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "- Channel [primary] width=130 bounds=100-300" in result.stdout
    assert "- Total Sessions [secondary] width=130 bounds=100-200 (avg: 200)" in result.stdout
    assert "- Mar-2025 [monthly] width=120 bounds=100-150" in result.stdout
    assert "Rows: 2" in result.stdout


def test_run_all_writes_configured_outputs(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(
        app,
        [
            "run-all",
            "--payload",
            str(_write_payload(tmp_path)),
            "--out",
            str(out_dir),
            "--config",
            str(_write_config(tmp_path, html=True, excel=False, view_json=True)),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Run complete. Outputs: 2" in result.stdout
    assert (out_dir / "reports" / "channelConversion.html").exists()
    assert (out_dir / "reports" / "channelConversion.view.json").exists()
    assert not (out_dir / "exports" / "channelConversion.xlsx").exists()


def test_fetch_command_stores_payload(monkeypatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def _fake_fetch(base_url, report_type, brand_id, start_date, end_date, **kwargs):
        captured.update(
            base_url=base_url,
            report_type=report_type,
            brand_id=brand_id,
            start_date=start_date,
            end_date=end_date,
            timeout=kwargs.get("timeout"),
        )
        return ReportPayload(report_type=report_type, data=[{"Channel": "Direct"}])

    monkeypatch.setattr("metrics_grid.cli.fetch_report", _fake_fetch)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        app,
        [
            "fetch",
            "--report-type",
            "channelConversion",
            "--brand-id",
            "brand-1",
            "--start-date",
            "2025-01-01",
            "--end-date",
            "2025-03-31",
            "--out",
            str(out_dir),
            "--config",
            str(_write_config(tmp_path)),
            "--base-url",
            "https://api.example.test",
        ],
    )

    assert result.exit_code == 0, result.output
    assert captured["base_url"] == "https://api.example.test"
    assert captured["timeout"] == 30
    stored = json.loads(
        (out_dir / "payloads" / "channelConversion_brand-1.json").read_text(encoding="utf-8")
    )
    assert stored["reportType"] == "channelConversion"
    assert "(1 rows)" in result.stdout


def test_fetch_command_requires_base_url(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("METRICS_GRID_API_URL", raising=False)

    result = CliRunner().invoke(
        app,
        [
            "fetch",
            "--report-type",
            "channelConversion",
            "--brand-id",
            "brand-1",
            "--start-date",
            "2025-01-01",
            "--end-date",
            "2025-03-31",
            "--config",
            str(_write_config(tmp_path)),
        ],
    )

    assert result.exit_code == 2


def test_fetch_command_reports_failures(monkeypatch, tmp_path: Path) -> None:
    def _failing_fetch(*args, **kwargs):
        raise ReportFetchError("Failed to fetch channelConversion report: boom")

    monkeypatch.setattr("metrics_grid.cli.fetch_report", _failing_fetch)

    result = CliRunner().invoke(
        app,
        [
            "fetch",
            "--report-type",
            "channelConversion",
            "--brand-id",
            "brand-1",
            "--start-date",
            "2025-01-01",
            "--end-date",
            "2025-03-31",
            "--out",
            str(tmp_path / "out"),
            "--config",
            str(_write_config(tmp_path)),
            "--base-url",
            "https://api.example.test",
        ],
    )

    assert result.exit_code == 1
    assert "Fetch failed" in result.output
