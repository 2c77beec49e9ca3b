"""Standalone HTML rendition of a dashboard layout."""
from __future__ import annotations

import html
from typing import List

from .artifacts import ExportArtifact, build_export_filename
from .geometry import PERCENT_TARGET, map_geometry
from .schemas import DashboardComponent, DashboardConfig

CHART_LIBRARY_URL = "https://cdn.jsdelivr.net/npm/chart.js"
HTML_MEDIA_TYPE = "text/html;charset=utf-8"
_CSS_ESCAPES = str.maketrans({"\\": "\\5C ", "<": "\\3C ", ">": "\\3E "})


def _css_token(value: str) -> str:
    """Theme token safe to place inside the inline <style> element."""
    return value.translate(_CSS_ESCAPES)


def _format_percent(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return f"{text}%"


def _render_component_block(component: DashboardComponent) -> str:
    geometry = map_geometry(component.position, component.size, PERCENT_TARGET)
    style = (
        f"left:{_format_percent(geometry.x)};"
        f"top:{_format_percent(geometry.y)};"
        f"width:{_format_percent(geometry.width)};"
        f"height:{_format_percent(geometry.height)};"
    )

    parts: List[str] = [
        f'<div class="component" data-component-id="{html.escape(component.id)}" style="{style}">'
    ]
    if component.title:
        parts.append(f'<div class="component-title">{html.escape(component.title)}</div>')

    if component.type == "kpi":
        kpi = component.kpi_data()
        value = html.escape(kpi.formatted_value())
        unit = f' <span class="kpi-unit">{html.escape(kpi.unit)}</span>' if kpi.unit else ""
        parts.append(f'<div class="kpi-value">{value}{unit}</div>')
    else:
        parts.append(f'<canvas id="chart-{html.escape(component.id)}"></canvas>')

    parts.append("</div>")
    return "".join(parts)


def render_markup(dashboard: DashboardConfig) -> str:
    theme = dashboard.theme
    font_family = _css_token(theme.font_family)
    background = _css_token(theme.background_color)
    text_color = _css_token(theme.text_color)
    primary = _css_token(theme.primary_color)
    title = html.escape(dashboard.title)
    blocks = "\n".join(_render_component_block(component) for component in dashboard.components)

    styles = (
        f"body{{margin:0;padding:20px;font-family:{font_family};"
        f"background:{background};color:{text_color};}}"
        f"h1{{margin:0 0 16px;color:{primary};}}"
        ".dashboard{position:relative;width:100%;max-width:1200px;margin:0 auto;"
        "aspect-ratio:16/9;}"
        ".component{position:absolute;box-sizing:border-box;padding:10px;"
        "background:rgba(255,255,255,0.9);border-radius:8px;"
        "box-shadow:0 2px 4px rgba(0,0,0,0.1);display:flex;flex-direction:column;}"
        ".component-title{font-size:14px;font-weight:600;margin-bottom:8px;}"
        f".kpi-value{{font-size:32px;font-weight:bold;color:{primary};"
        "margin:auto;text-align:center;}"
        ".kpi-unit{font-size:16px;}"
        ".component canvas{flex:1;min-height:0;}"
    )

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"<title>{title}</title>\n"
        f'<script src="{CHART_LIBRARY_URL}"></script>\n'
        f"<style>{styles}</style>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{title}</h1>\n"
        f'<div class="dashboard">\n{blocks}\n</div>\n'
        "</body>\n"
        "</html>\n"
    )


def render_markup_artifact(dashboard: DashboardConfig, document: str) -> ExportArtifact:
    return ExportArtifact(
        content=document.encode("utf-8"),
        media_type=HTML_MEDIA_TYPE,
        filename=build_export_filename(dashboard.title, "html"),
    )
