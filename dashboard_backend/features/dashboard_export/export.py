"""Single entry point turning a dashboard layout into an export response."""
from __future__ import annotations

import logging
from functools import partial
from time import perf_counter
from typing import Callable, Dict, Optional, Union

from starlette.concurrency import run_in_threadpool

from .artifacts import ExportArtifact, ExportGenerationError
from .clipboard import ClipboardWriter, copy_to_clipboard
from .config import ExportSettings, get_settings
from .document import render_document
from .image import render_image
from .markup import render_markup, render_markup_artifact
from .presentation import render_presentation
from .schemas import DashboardConfig, ExportFailure, ExportFormat, ExportResponse, ExportSuccess
from .surface import RenderSurface

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Export failed: "

Renderer = Callable[[DashboardConfig, Optional[RenderSurface]], ExportArtifact]


def _render_presentation(dashboard: DashboardConfig, _surface: Optional[RenderSurface]) -> ExportArtifact:
    return render_presentation(dashboard)


def _render_markup(dashboard: DashboardConfig, _surface: Optional[RenderSurface]) -> ExportArtifact:
    return render_markup_artifact(dashboard, render_markup(dashboard))


RENDERERS: Dict[ExportFormat, Renderer] = {
    ExportFormat.JPEG: partial(render_image, image_format=ExportFormat.JPEG),
    ExportFormat.PNG: partial(render_image, image_format=ExportFormat.PNG),
    ExportFormat.PDF: render_document,
    ExportFormat.PPTX: _render_presentation,
    ExportFormat.HTML: _render_markup,
}


def resolve_export_format(value: Union[ExportFormat, str]) -> ExportFormat:
    if isinstance(value, ExportFormat):
        return value
    try:
        return ExportFormat(value)
    except ValueError as exc:
        raise ExportGenerationError(f"Unsupported export format: {value}") from exc


async def _copy_markup_to_clipboard(document: str, writer: ClipboardWriter) -> bool:
    try:
        await run_in_threadpool(writer, document)
    except Exception as exc:
        logger.warning("Clipboard copy of HTML export failed, export still delivered: %s", exc)
        return False
    return True


async def export_dashboard(
    dashboard: DashboardConfig,
    export_format: Union[ExportFormat, str],
    surface: Optional[RenderSurface] = None,
    *,
    clipboard_writer: Optional[ClipboardWriter] = None,
    settings: Optional[ExportSettings] = None,
) -> ExportResponse:
    """Render ``dashboard`` as ``export_format`` and wrap the outcome.

    Never raises: renderer errors and unknown formats come back as an
    ``ExportFailure`` whose message starts with ``"Export failed: "``.
    """

    started = perf_counter()
    requested = getattr(export_format, "value", export_format)

    try:
        fmt = resolve_export_format(export_format)
        artifact = await run_in_threadpool(RENDERERS[fmt], dashboard, surface)
    except ExportGenerationError as exc:
        logger.warning("Export of %r as %s failed: %s", dashboard.title, requested, exc)
        return _failure(exc, started, requested)
    except Exception as exc:
        logger.exception("Export of %r as %s failed with unexpected error", dashboard.title, requested)
        return _failure(exc, started, requested)

    clipboard_copied: Optional[bool] = None
    if fmt is ExportFormat.HTML:
        writer = clipboard_writer
        if writer is None and (settings or get_settings()).clipboard_enabled:
            writer = copy_to_clipboard
        if writer is not None:
            clipboard_copied = await _copy_markup_to_clipboard(artifact.content.decode("utf-8"), writer)

    duration_ms = (perf_counter() - started) * 1000
    logger.info(
        "export_completed format=%s filename=%s bytes=%d duration_ms=%.2f",
        fmt.value,
        artifact.filename,
        len(artifact.content),
        duration_ms,
    )
    return ExportSuccess(
        download_url=artifact.as_data_url(),
        filename=artifact.filename,
        clipboard_copied=clipboard_copied,
    )


def _failure(exc: Exception, started: float, requested: object) -> ExportFailure:
    duration_ms = (perf_counter() - started) * 1000
    logger.info("export_failed format=%s duration_ms=%.2f", requested, duration_ms)
    message = str(exc) or exc.__class__.__name__
    return ExportFailure(error=f"{ERROR_PREFIX}{message}")
