from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import THEME, chart_component, kpi_component, png_data_url
from dashboard_backend import main
from dashboard_backend.features.dashboard_export import export as export_module


@pytest.fixture(name="copied")
def copied_fixture(monkeypatch):
    copied: list[str] = []
    monkeypatch.setattr(export_module, "copy_to_clipboard", copied.append)
    return copied


@pytest.fixture(name="client")
def client_fixture(copied):
    with TestClient(main.app) as client:
        yield client


def _payload(export_format: str, **extra) -> dict:
    payload = {
        "dashboard": {
            "title": "Q1 Report",
            "theme": THEME,
            "components": [kpi_component(), chart_component()],
        },
        "format": export_format,
    }
    payload.update(extra)
    return payload


def test_health_reports_status_and_timestamp(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert datetime.fromisoformat(body["timestamp"])


def test_export_html_returns_success_shape(client, copied) -> None:
    response = client.post("/api/dashboard/export", json=_payload("html"))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["filename"] == "q1_report.html"
    assert body["downloadUrl"].startswith("data:text/html")
    assert body["clipboardCopied"] is True
    assert "error" not in body
    assert len(copied) == 1


def test_export_png_uses_supplied_screenshot(client) -> None:
    surface = {"dataUrl": png_data_url((800, 450)), "width": 800, "height": 450}

    response = client.post("/api/dashboard/export", json=_payload("png", surface=surface))

    body = response.json()
    assert body == {
        "success": True,
        "downloadUrl": body["downloadUrl"],
        "filename": "dashboard.png",
    }
    assert body["downloadUrl"].startswith("data:image/png;base64,")


def test_export_unknown_format_returns_failure_shape(client) -> None:
    response = client.post("/api/dashboard/export", json=_payload("svg"))

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "error": "Export failed: Unsupported export format: svg",
    }


def test_export_pdf_without_surface_fails(client) -> None:
    response = client.post("/api/dashboard/export", json=_payload("pdf"))

    body = response.json()
    assert body["success"] is False
    assert body["error"].startswith("Export failed:")


def test_invalid_dashboard_is_rejected(client) -> None:
    response = client.post("/api/dashboard/export", json={"format": "pdf"})

    assert response.status_code == 422


def test_security_headers_are_set(client) -> None:
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"


def test_oversized_body_is_rejected(monkeypatch, client) -> None:
    monkeypatch.setattr(main.settings, "max_body_bytes", 16)

    response = client.post("/api/dashboard/export", json=_payload("html"))

    assert response.status_code == 413


def test_chunked_body_over_limit_is_rejected(monkeypatch, client) -> None:
    monkeypatch.setattr(main.settings, "max_body_bytes", 16)

    def chunks():
        yield b'{"format": "html",'
        yield b' "dashboard": {}}'

    response = client.post(
        "/api/dashboard/export",
        content=chunks(),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json() == {"detail": "Request body exceeds 16 bytes"}


def test_cors_preflight_allows_frontend_origin(client) -> None:
    origin = main.settings.frontend_url

    response = client.options(
        "/api/dashboard/export",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == origin


def test_cors_refuses_foreign_origin(client) -> None:
    foreign = "https://evil.example.com"

    preflight = client.options(
        "/api/dashboard/export",
        headers={"Origin": foreign, "Access-Control-Request-Method": "POST"},
    )
    simple = client.get("/health", headers={"Origin": foreign})

    assert preflight.status_code == 400
    assert "access-control-allow-origin" not in preflight.headers
    assert simple.status_code == 200
    assert "access-control-allow-origin" not in simple.headers
