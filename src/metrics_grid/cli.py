from __future__ import annotations

import re
from pathlib import Path

import typer

from metrics_grid.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from metrics_grid.grid import GridView, ReportGrid, options_from_config
from metrics_grid.io.api import ReportFetchError, fetch_report
from metrics_grid.io.read import ReportPayload, load_payload
from metrics_grid.io.write import write_payload, write_view
from metrics_grid.logging import configure_logging
from metrics_grid.pagination import PAGE_SIZE_OPTIONS
from metrics_grid.paths import build_output_paths
from metrics_grid.report.export import export_conversion_workbook
from metrics_grid.report.render import render_grid_html
from metrics_grid.thresholds import (
    SUMMARY_COLUMN_PAIRS,
    compute_summary_thresholds,
    resolve_metric_pair,
)

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _load_payload(payload: Path) -> ReportPayload:
    try:
        return load_payload(payload)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--payload") from exc


def _resolve_filter(values: list[str] | None, empty_filter: bool) -> list[str] | None:
    if empty_filter:
        if values:
            raise typer.BadParameter("--empty-filter cannot be combined with --filter")
        return []
    return values or None


def _report_stem(payload: ReportPayload, fallback: str) -> str:
    name = payload.report_type or fallback
    return re.sub(r"[^A-Za-z0-9_-]+", "_", name).strip("_") or "report"


def _build_grid(
    payload: ReportPayload,
    cfg: AppConfig,
    filter_values: list[str] | None,
    page: int,
    page_size: str | None,
    sort: str | None,
) -> ReportGrid:
    options = options_from_config(cfg.grid)
    grid = ReportGrid(payload.data, options, filter_values=filter_values)
    if page_size is not None:
        if page_size not in PAGE_SIZE_OPTIONS:
            raise typer.BadParameter(
                f"Expected one of {', '.join(PAGE_SIZE_OPTIONS)}", param_hint="--page-size"
            )
        grid.set_page_size(page_size)
    if sort is not None:
        grid.toggle_sort(sort)
    grid.go_to_page(page)
    return grid


def _export(payload: ReportPayload, cfg: AppConfig, out_path: Path) -> Path:
    pair = resolve_metric_pair(cfg.grid.metric_pair)
    thresholds = compute_summary_thresholds(payload.data, SUMMARY_COLUMN_PAIRS[pair])
    return export_conversion_workbook(
        payload.data,
        primary_column=cfg.grid.primary_column,
        secondary_columns=cfg.grid.secondary_columns,
        monthly_metrics=cfg.grid.monthly_metrics,
        thresholds=thresholds,
        out_path=out_path,
        monthly_key=cfg.grid.monthly_key,
        classified_metrics=(pair.traffic, pair.quality),
    )


@app.command()
def render(
    payload: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    filter_values: list[str] | None = typer.Option(
        None,
        "--filter",
        help="Primary-column values to keep. Repeat for several values.",
    ),
    empty_filter: bool = typer.Option(
        False, help="Apply an empty filter: an active filter that matches nothing."
    ),
    page: int = typer.Option(1, min=1),
    page_size: str | None = typer.Option(None, help="One of 50, 100, 200, all."),
    sort: str | None = typer.Option(None, help="Column to sort by (requires grid.sortable)."),
    title: str = typer.Option("Conversion Report"),
) -> None:
    """Render a report payload as an HTML metrics grid."""
    configure_logging()
    cfg = _load_app_config(config)
    report = _load_payload(payload)
    grid = _build_grid(
        report,
        cfg,
        _resolve_filter(filter_values, empty_filter),
        page,
        page_size,
        sort,
    )
    paths = build_output_paths(out)
    view = grid.view()
    stem = _report_stem(report, payload.stem)
    report_path = render_grid_html(
        view,
        paths.reports / f"{stem}.html",
        title=title,
        report_type=report.report_type,
    )
    if cfg.outputs.view_json:
        write_view(view, paths.reports / f"{stem}.view.json")
    typer.echo(f"Report written to: {report_path}")


@app.command()
def export(
    payload: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Export a report payload to a colour-coded Excel workbook."""
    configure_logging()
    cfg = _load_app_config(config)
    report = _load_payload(payload)
    paths = build_output_paths(out)
    stem = _report_stem(report, payload.stem)
    workbook_path = _export(report, cfg, paths.exports / f"{stem}.xlsx")
    typer.echo(f"Workbook written to: {workbook_path}")


@app.command()
def fetch(
    report_type: str = typer.Option(..., help="Report type, e.g. channelConversion."),
    brand_id: str = typer.Option(...),
    start_date: str = typer.Option(..., help="YYYY-MM-DD"),
    end_date: str = typer.Option(..., help="YYYY-MM-DD"),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    base_url: str | None = typer.Option(
        None,
        envvar="METRICS_GRID_API_URL",
        help="Analytics API base URL. Falls back to config.api.base_url.",
    ),
) -> None:
    """Fetch a report payload from the analytics API and store it as JSON."""
    configure_logging()
    cfg = _load_app_config(config)
    effective_base_url = base_url or cfg.api.base_url
    if not effective_base_url:
        raise typer.BadParameter(
            "Missing API base URL. "
            "Set --base-url or METRICS_GRID_API_URL or api.base_url in config."
        )
    try:
        report = fetch_report(
            effective_base_url,
            report_type,
            brand_id,
            start_date,
            end_date,
            timeout=cfg.api.timeout_seconds,
        )
    except ReportFetchError as exc:
        typer.echo(f"Fetch failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    paths = build_output_paths(out)
    payload_path = write_payload(report, paths.payloads / f"{report_type}_{brand_id}.json")
    typer.echo(f"Payload written to: {payload_path} ({len(report.data)} rows)")


@app.command()
def columns(
    payload: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Print the derived column layout and dataset averages."""
    configure_logging()
    cfg = _load_app_config(config)
    report = _load_payload(payload)
    grid = ReportGrid(report.data, options_from_config(cfg.grid))
    view: GridView = grid.view()
    for header in view.headers:
        bounds = f"{header.min_width}-{header.max_width if header.max_width else 'inf'}"
        line = f"- {header.label} [{header.kind}] width={header.width:g} bounds={bounds}"
        if header.annotation:
            line += f" {header.annotation}"
        typer.echo(line)
    typer.echo(f"Rows: {view.total_rows}")


@app.command("run-all")
def run_all_command(
    payload: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    title: str = typer.Option("Conversion Report"),
) -> None:
    """Render every configured output (HTML, Excel, view JSON) for one payload."""
    configure_logging()
    cfg = _load_app_config(config)
    report = _load_payload(payload)
    paths = build_output_paths(out)
    stem = _report_stem(report, payload.stem)
    grid = ReportGrid(report.data, options_from_config(cfg.grid))
    view = grid.view()

    written: list[Path] = []
    if cfg.outputs.html:
        written.append(
            render_grid_html(
                view, paths.reports / f"{stem}.html", title=title, report_type=report.report_type
            )
        )
    if cfg.outputs.excel:
        written.append(_export(report, cfg, paths.exports / f"{stem}.xlsx"))
    if cfg.outputs.view_json:
        written.append(write_view(view, paths.reports / f"{stem}.view.json"))

    typer.echo(f"Run complete. Outputs: {len(written)}")
    for path in written:
        typer.echo(f"- {path}")


if __name__ == "__main__":
    app()
