"""Caller-owned drawing surfaces read by the raster based renderers."""
from __future__ import annotations

import contextlib
import io
import logging
import math
import subprocess
import sys
import threading
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from .artifacts import ExportGenerationError, decode_data_url
from .config import ExportSettings, get_settings
from .geometry import LOGICAL_CANVAS_HEIGHT, LOGICAL_CANVAS_WIDTH
from .schemas import RenderSurfacePayload

logger = logging.getLogger(__name__)

_browser_install_lock = threading.Lock()
_browser_install_ready = False

ROOT_ELEMENT_ID = "dashboard-root"
SNAPSHOT_BROWSER_ARGS = ("--font-render-hinting=medium", "--disable-dev-shm-usage")


class SurfaceUnavailableError(ExportGenerationError):
    """Raised when the render surface is missing, empty or detached."""


class RenderSurface(Protocol):
    def capture(self, *, scale: float) -> bytes:
        """Return a PNG snapshot of the surface at ``scale`` x its CSS size."""


class ScreenshotSurface:
    """Surface backed by a screenshot the browser already captured."""

    def __init__(
        self,
        data_url: str,
        *,
        css_width: Optional[float] = None,
        css_height: Optional[float] = None,
        pixel_ratio: Optional[float] = None,
    ) -> None:
        self._data_url = data_url
        self._css_width = css_width
        self._css_height = css_height
        self._pixel_ratio = pixel_ratio

    def capture(self, *, scale: float) -> bytes:
        try:
            raw = decode_data_url(self._data_url)
        except ExportGenerationError as exc:
            raise SurfaceUnavailableError(str(exc)) from exc
        if not raw:
            raise SurfaceUnavailableError("Render surface is empty.")

        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise SurfaceUnavailableError(f"Render surface is not a readable image: {exc}") from exc

        if image.width <= 0 or image.height <= 0:
            raise SurfaceUnavailableError("Render surface is empty.")

        css_size = self._css_size(image.size)
        if css_size is not None:
            target = (
                max(1, int(round(css_size[0] * scale))),
                max(1, int(round(css_size[1] * scale))),
            )
            if target != image.size:
                logger.debug("Resampling surface snapshot from %s to %s", image.size, target)
                image = image.resize(target, Image.Resampling.LANCZOS)

        output = io.BytesIO()
        image.save(output, format="PNG")
        return output.getvalue()

    def _css_size(self, bitmap_size: tuple[int, int]) -> Optional[tuple[float, float]]:
        if self._css_width and self._css_height:
            return self._css_width, self._css_height
        if self._pixel_ratio:
            return bitmap_size[0] / self._pixel_ratio, bitmap_size[1] / self._pixel_ratio
        return None


_MISSING_BROWSER_MARKERS = ("playwright install", "executable doesn't exist", "looks like playwright")


def _browser_missing(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _MISSING_BROWSER_MARKERS)


def _ensure_snapshot_browser() -> None:
    """Download chromium once per process so DOM snapshots can be rendered."""
    global _browser_install_ready

    with _browser_install_lock:
        if _browser_install_ready:
            return

        logger.info("Chromium is missing; downloading it for dashboard snapshots.")
        command = [sys.executable, "-m", "playwright", "install", "chromium"]
        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as exc:
            output = (exc.stderr or exc.stdout or "").strip()
            logger.error("Chromium download for dashboard snapshots failed: %s", output or exc)
            raise SurfaceUnavailableError(
                "Dashboard snapshot renderer is unavailable: chromium could not be downloaded."
            ) from exc

        _browser_install_ready = True


def compose_snapshot_document(html: str, width: float, height: float) -> str:
    width_px = int(math.ceil(width))
    height_px = int(math.ceil(height))
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        "<style>html,body{margin:0;padding:0;background:transparent;overflow:hidden;}"
        "*,*::before,*::after{animation:none !important;transition:none !important;}</style>"
        "</head><body>"
        f'<div id="{ROOT_ELEMENT_ID}" style="position:absolute;top:0;left:0;'
        f'width:{width_px}px;height:{height_px}px;overflow:hidden;">{html}</div>'
        "</body></html>"
    )


class DomSnapshotSurface:
    """Surface rebuilt in headless chromium from a serialised DOM snapshot."""

    def __init__(
        self,
        html: str,
        *,
        width: float,
        height: float,
        headless: bool = True,
        timeout_ms: int = 15000,
    ) -> None:
        self._html = html
        self._width = width
        self._height = height
        self._headless = headless
        self._timeout_ms = timeout_ms

    def capture(self, *, scale: float) -> bytes:
        if not self._html.strip():
            raise SurfaceUnavailableError("Render surface is empty.")

        document = compose_snapshot_document(self._html, self._width, self._height)
        viewport = {
            "width": max(1, int(math.ceil(self._width))),
            "height": max(1, int(math.ceil(self._height))),
        }

        with sync_playwright() as play:
            browser = self._launch(play)
            try:
                context = browser.new_context(viewport=viewport, device_scale_factor=scale)
                page = context.new_page()
                page.set_content(document, wait_until="networkidle", timeout=self._timeout_ms)
                element = page.query_selector(f"#{ROOT_ELEMENT_ID}")
                if element is None:
                    raise SurfaceUnavailableError("Render surface is detached from the document.")
                return element.screenshot(type="png", timeout=self._timeout_ms)
            except PlaywrightError as exc:
                raise SurfaceUnavailableError(f"Unable to capture render surface: {exc}") from exc
            finally:
                with contextlib.suppress(PlaywrightError):
                    browser.close()

    def _launch(self, play):
        options = {"headless": self._headless, "args": list(SNAPSHOT_BROWSER_ARGS)}
        try:
            return play.chromium.launch(**options)
        except PlaywrightError as exc:
            if not _browser_missing(exc):
                raise SurfaceUnavailableError(f"Dashboard snapshot browser failed to start: {exc}") from exc

        _ensure_snapshot_browser()
        try:
            return play.chromium.launch(**options)
        except PlaywrightError as exc:
            raise SurfaceUnavailableError(f"Dashboard snapshot browser failed to start: {exc}") from exc


def build_surface(
    payload: Optional[RenderSurfacePayload],
    settings: Optional[ExportSettings] = None,
) -> Optional[RenderSurface]:
    if payload is None:
        return None

    if payload.data_url:
        css_width, css_height = payload.width, payload.height
        if payload.pixel_ratio is None:
            css_width = css_width or LOGICAL_CANVAS_WIDTH
            css_height = css_height or LOGICAL_CANVAS_HEIGHT
        return ScreenshotSurface(
            payload.data_url,
            css_width=css_width,
            css_height=css_height,
            pixel_ratio=payload.pixel_ratio,
        )

    if payload.html:
        settings = settings or get_settings()
        return DomSnapshotSurface(
            payload.html,
            width=payload.width or LOGICAL_CANVAS_WIDTH,
            height=payload.height or LOGICAL_CANVAS_HEIGHT,
            headless=settings.browser_headless,
            timeout_ms=settings.browser_timeout_ms,
        )

    return None
