import asyncio
import base64
import io

import pytest
from pptx import Presentation

from conftest import build_dashboard, kpi_component, png_data_url
from dashboard_backend.features.dashboard_export import export as export_module
from dashboard_backend.features.dashboard_export.config import ExportSettings
from dashboard_backend.features.dashboard_export.export import ERROR_PREFIX, export_dashboard
from dashboard_backend.features.dashboard_export.schemas import ExportFailure, ExportFormat, ExportSuccess
from dashboard_backend.features.dashboard_export.surface import ScreenshotSurface


def _surface() -> ScreenshotSurface:
    return ScreenshotSurface(png_data_url((800, 450)), css_width=800, css_height=450)


def _decode(download_url: str) -> bytes:
    header, payload = download_url.split(",", 1)
    assert header.endswith(";base64")
    return base64.b64decode(payload)


def _slide_texts(pptx_bytes: bytes) -> list[str]:
    slide = Presentation(io.BytesIO(pptx_bytes)).slides[0]
    return [shape.text_frame.text for shape in slide.shapes if shape.has_text_frame]


def _no_clipboard() -> ExportSettings:
    return ExportSettings(clipboard_enabled=False)


def test_unsupported_format_returns_failure(sample_dashboard) -> None:
    response = asyncio.run(export_dashboard(sample_dashboard, "svg", _surface()))

    assert isinstance(response, ExportFailure)
    assert response.success is False
    assert response.error.startswith("Export failed:")
    assert "svg" in response.error
    assert "downloadUrl" not in response.model_dump(by_alias=True)


def test_missing_surface_returns_failure(sample_dashboard) -> None:
    response = asyncio.run(export_dashboard(sample_dashboard, ExportFormat.PNG, None))

    assert isinstance(response, ExportFailure)
    assert response.error == f"{ERROR_PREFIX}Render surface is not available."


def test_unexpected_renderer_error_is_normalised(monkeypatch, sample_dashboard) -> None:
    def broken(dashboard, surface):
        raise RuntimeError("boom")

    monkeypatch.setitem(export_module.RENDERERS, ExportFormat.PPTX, broken)

    response = asyncio.run(export_dashboard(sample_dashboard, "pptx"))

    assert isinstance(response, ExportFailure)
    assert response.error == "Export failed: boom"


@pytest.mark.parametrize(
    ("export_format", "filename", "media_type"),
    [
        ("png", "dashboard.png", "image/png"),
        ("jpeg", "dashboard.jpeg", "image/jpeg"),
        ("pdf", "sales_overview.pdf", "application/pdf"),
        (ExportFormat.PPTX, "sales_overview.pptx", "application/vnd.openxmlformats-officedocument"),
    ],
)
def test_successful_exports_return_data_urls(export_format, filename, media_type) -> None:
    dashboard = build_dashboard("Sales Overview", [kpi_component()])

    response = asyncio.run(export_dashboard(dashboard, export_format, _surface()))

    assert isinstance(response, ExportSuccess)
    assert response.filename == filename
    assert response.download_url.startswith(f"data:{media_type}")
    assert response.clipboard_copied is None
    assert _decode(response.download_url)


def test_html_export_copies_document_to_clipboard(sample_dashboard) -> None:
    copied: list[str] = []

    response = asyncio.run(
        export_dashboard(sample_dashboard, "html", clipboard_writer=copied.append)
    )

    assert isinstance(response, ExportSuccess)
    assert response.filename == "q1_report.html"
    assert response.clipboard_copied is True
    document = _decode(response.download_url).decode("utf-8")
    assert copied == [document]
    assert "<title>Q1 Report</title>" in document


def test_html_export_survives_clipboard_failure(sample_dashboard) -> None:
    def failing_writer(text: str) -> None:
        raise OSError("no clipboard available")

    response = asyncio.run(
        export_dashboard(sample_dashboard, "html", clipboard_writer=failing_writer)
    )

    assert isinstance(response, ExportSuccess)
    assert response.clipboard_copied is False
    assert response.download_url.startswith("data:text/html")


def test_html_export_uses_system_clipboard_when_enabled(monkeypatch, sample_dashboard) -> None:
    copied: list[str] = []
    monkeypatch.setattr(export_module, "copy_to_clipboard", copied.append)

    enabled = asyncio.run(
        export_dashboard(sample_dashboard, "html", settings=ExportSettings(clipboard_enabled=True))
    )
    disabled = asyncio.run(export_dashboard(sample_dashboard, "html", settings=_no_clipboard()))

    assert enabled.clipboard_copied is True
    assert len(copied) == 1
    assert disabled.clipboard_copied is None


def test_export_is_idempotent_and_leaves_dashboard_untouched(sample_dashboard) -> None:
    before = sample_dashboard.model_dump()

    first = asyncio.run(export_dashboard(sample_dashboard, "pptx"))
    second = asyncio.run(export_dashboard(sample_dashboard, "pptx"))
    first_html = asyncio.run(export_dashboard(sample_dashboard, "html", settings=_no_clipboard()))
    second_html = asyncio.run(export_dashboard(sample_dashboard, "html", settings=_no_clipboard()))

    assert first.filename == second.filename
    assert _slide_texts(_decode(first.download_url)) == _slide_texts(_decode(second.download_url))
    assert first_html == second_html
    assert sample_dashboard.model_dump() == before
