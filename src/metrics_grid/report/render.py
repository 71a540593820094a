from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter

from jinja2 import Environment, FileSystemLoader, select_autoescape

from metrics_grid.grid import GridView

LOGGER = logging.getLogger(__name__)

TEMPLATE_NAME = "report_table.html.j2"


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _px(width: float) -> str:
    return f"{round(width)}px"


def render_grid_html(
    view: GridView,
    out_path: Path,
    title: str = "Conversion Report",
    report_type: str = "",
) -> Path:
    env = _template_env()
    env.filters["px"] = _px
    template = env.get_template(TEMPLATE_NAME)

    started = perf_counter()
    rendered = template.render(
        title=title,
        report_type=report_type,
        view=view,
        total_width=sum(header.width for header in view.headers),
        column_count=max(len(view.headers), 1),
        generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
    )
    render_ms = round((perf_counter() - started) * 1000.0, 3)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(rendered, encoding="utf-8")
    LOGGER.info("Rendered %d rows to %s in %.3f ms", len(view.rows), out_path, render_ms)
    return out_path
