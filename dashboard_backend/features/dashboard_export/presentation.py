from __future__ import annotations

import io
import logging
import re
from typing import Any, Optional

from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from .artifacts import ExportArtifact, build_export_filename
from .geometry import SLIDE_CONTENT_TARGET, SLIDE_HEIGHT_IN, SLIDE_WIDTH_IN, Geometry, map_geometry
from .schemas import DashboardComponent, DashboardConfig, Theme

logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
BLANK_LAYOUT_INDEX = 6

TITLE_BOX = (0.5, 0.25, 9.0, 0.6)
TITLE_FONT_SIZE = 24
KPI_FONT_SIZE = 18
KPI_TITLE_FONT_SIZE = 12
KPI_TITLE_HEIGHT_IN = 0.3
_HEX_TOKEN = re.compile(r"#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")


def theme_rgb(token: Optional[str]) -> Optional[RGBColor]:
    """RGB for a ``#rgb``/``#rrggbb`` theme token; other CSS colours are left to the template."""
    if not token:
        return None
    match = _HEX_TOKEN.fullmatch(token.strip())
    if match is None:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return RGBColor.from_string(digits.upper())


def build_kpi_text(component: DashboardComponent) -> str:
    kpi = component.kpi_data()
    text = kpi.formatted_value()
    if kpi.unit:
        text = f"{text} {kpi.unit}"
    return text


def build_bar_series(component: DashboardComponent) -> list[dict[str, Any]]:
    """Series for the first dataset, one single-valued series per label."""

    datasets = component.chart_data().datasets
    if not datasets:
        return []

    dataset = datasets[0]
    if not dataset.labels:
        return []

    return [
        {"name": label, "values": [value]}
        for label, value in zip(dataset.labels, dataset.data)
    ]


def _add_text_box(
    slide,
    text: str,
    *,
    left: float,
    top: float,
    width: float,
    height: float,
    font_size: int,
    color: Optional[str],
    bold: bool = False,
    align: PP_ALIGN = PP_ALIGN.LEFT,
    anchor: MSO_ANCHOR = MSO_ANCHOR.TOP,
):
    shape = slide.shapes.add_textbox(Inches(left), Inches(top), Inches(width), Inches(height))
    text_frame = shape.text_frame
    text_frame.word_wrap = True
    text_frame.vertical_anchor = anchor

    paragraph = text_frame.paragraphs[0]
    paragraph.alignment = align
    run = paragraph.add_run()
    run.text = text
    run.font.size = Pt(font_size)
    run.font.bold = bold
    rgb = theme_rgb(color)
    if rgb is not None:
        run.font.color.rgb = rgb
    return shape


def _render_chart(slide, component: DashboardComponent, geometry: Geometry) -> None:
    chart_data = CategoryChartData()
    chart_data.categories = [component.title or ""]
    for series in build_bar_series(component):
        chart_data.add_series(series["name"], series["values"])

    graphic_frame = slide.shapes.add_chart(
        XL_CHART_TYPE.COLUMN_CLUSTERED,
        Inches(geometry.x),
        Inches(geometry.y),
        Inches(geometry.width),
        Inches(geometry.height),
        chart_data,
    )
    chart = graphic_frame.chart
    if component.title:
        chart.has_title = True
        chart.chart_title.text_frame.text = component.title
    else:
        chart.has_title = False


def _render_kpi(slide, component: DashboardComponent, geometry: Geometry, theme: Theme) -> None:
    _add_text_box(
        slide,
        build_kpi_text(component),
        left=geometry.x,
        top=geometry.y,
        width=geometry.width,
        height=geometry.height,
        font_size=KPI_FONT_SIZE,
        color=theme.primary_color,
        bold=True,
        align=PP_ALIGN.CENTER,
        anchor=MSO_ANCHOR.MIDDLE,
    )

    if component.title:
        _add_text_box(
            slide,
            component.title,
            left=geometry.x,
            top=geometry.y - KPI_TITLE_HEIGHT_IN,
            width=geometry.width,
            height=KPI_TITLE_HEIGHT_IN,
            font_size=KPI_TITLE_FONT_SIZE,
            color=theme.text_color,
        )


def _render_component(slide, component: DashboardComponent, theme: Theme) -> None:
    geometry = map_geometry(component.position, component.size, SLIDE_CONTENT_TARGET)

    if component.type == "chart":
        _render_chart(slide, component, geometry)
    elif component.type == "kpi":
        _render_kpi(slide, component, geometry, theme)
    else:
        logger.debug("Skipping component %s: no slide rendering for type %r", component.id, component.type)


def render_presentation(dashboard: DashboardConfig) -> ExportArtifact:
    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT_INDEX])

    left, top, width, height = TITLE_BOX
    _add_text_box(
        slide,
        dashboard.title,
        left=left,
        top=top,
        width=width,
        height=height,
        font_size=TITLE_FONT_SIZE,
        color=dashboard.theme.primary_color,
        bold=True,
    )

    for component in dashboard.components:
        _render_component(slide, component, dashboard.theme)

    buffer = io.BytesIO()
    prs.save(buffer)
    logger.debug("Built slide with %d component(s) for %r", len(dashboard.components), dashboard.title)

    return ExportArtifact(
        content=buffer.getvalue(),
        media_type=PPTX_MEDIA_TYPE,
        filename=build_export_filename(dashboard.title, "pptx"),
    )
