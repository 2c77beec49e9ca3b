from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image

from .artifacts import DEFAULT_EXPORT_BASENAME, ExportArtifact, ExportGenerationError
from .schemas import DashboardConfig, ExportFormat
from .surface import RenderSurface, SurfaceUnavailableError

logger = logging.getLogger(__name__)

IMAGE_QUALITY = 0.9
IMAGE_SCALE = 2.0

IMAGE_MEDIA_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
}


def convert_png_to_jpeg(png_bytes: bytes, quality: float = IMAGE_QUALITY) -> bytes:
    """Re-encode a PNG snapshot as JPEG, flattening transparency onto white."""

    img = Image.open(io.BytesIO(png_bytes))
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1] if img.mode in ("RGBA", "LA") else None)
        img = background
    elif img.mode != "RGB":
        img = img.convert("RGB")

    output = io.BytesIO()
    img.save(output, format="JPEG", quality=int(round(quality * 100)), optimize=True)
    return output.getvalue()


def render_image(
    dashboard: DashboardConfig,
    surface: Optional[RenderSurface],
    image_format: ExportFormat,
) -> ExportArtifact:
    if image_format not in IMAGE_MEDIA_TYPES:
        raise ExportGenerationError(f"Unsupported image format: {image_format.value}")
    if surface is None:
        raise SurfaceUnavailableError("Render surface is not available.")

    logger.debug("Capturing %s snapshot of dashboard %r", image_format.value, dashboard.title)
    png_bytes = surface.capture(scale=IMAGE_SCALE)
    content = convert_png_to_jpeg(png_bytes) if image_format is ExportFormat.JPEG else png_bytes

    return ExportArtifact(
        content=content,
        media_type=IMAGE_MEDIA_TYPES[image_format],
        filename=f"{DEFAULT_EXPORT_BASENAME}.{image_format.value}",
    )
