from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Optional

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .artifacts import ExportArtifact, ExportGenerationError, build_export_filename
from .geometry import canvas_aspect_ratio
from .image import IMAGE_SCALE
from .schemas import DashboardConfig
from .surface import RenderSurface, SurfaceUnavailableError

logger = logging.getLogger(__name__)

# A4 landscape, in millimetres.
PAGE_WIDTH_MM = 297.0
PAGE_HEIGHT_MM = 210.0
PAGE_MARGIN_MM = 10.0


@dataclass(frozen=True, slots=True)
class ImageBox:
    x: float
    y: float
    width: float
    height: float


def compute_image_box(
    page_width: float = PAGE_WIDTH_MM,
    page_height: float = PAGE_HEIGHT_MM,
    margin: float = PAGE_MARGIN_MM,
) -> ImageBox:
    """Largest canvas-shaped box inside the margins, centred on the page."""

    aspect_ratio = canvas_aspect_ratio()
    available_width = page_width - 2 * margin
    available_height = page_height - 2 * margin

    width = available_width
    height = width * aspect_ratio
    if height > available_height:
        height = available_height
        width = height / aspect_ratio

    return ImageBox(
        x=(page_width - width) / 2,
        y=(page_height - height) / 2,
        width=width,
        height=height,
    )


def render_document(dashboard: DashboardConfig, surface: Optional[RenderSurface]) -> ExportArtifact:
    if surface is None:
        raise SurfaceUnavailableError("Render surface is not available.")

    png_bytes = surface.capture(scale=IMAGE_SCALE)
    box = compute_image_box()

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH_MM * mm, PAGE_HEIGHT_MM * mm), invariant=1)
    pdf.setTitle(dashboard.title)

    try:
        image = ImageReader(io.BytesIO(png_bytes))
        # reportlab measures y from the bottom edge; the box is vertically centred
        # so the bottom offset equals the top offset.
        pdf.drawImage(
            image,
            box.x * mm,
            box.y * mm,
            width=box.width * mm,
            height=box.height * mm,
            preserveAspectRatio=False,
            mask="auto",
        )
    except OSError as exc:
        logger.error("Failed to draw dashboard snapshot into PDF: %s", exc, exc_info=True)
        raise ExportGenerationError(f"Failed to draw dashboard snapshot: {exc}") from exc

    pdf.showPage()
    pdf.save()
    logger.debug(
        "PDF snapshot placed at (%.1f, %.1f) mm, size %.1f x %.1f mm",
        box.x,
        box.y,
        box.width,
        box.height,
    )

    return ExportArtifact(
        content=buffer.getvalue(),
        media_type="application/pdf",
        filename=build_export_filename(dashboard.title, "pdf"),
    )
