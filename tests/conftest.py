from __future__ import annotations

import base64
import io

import pytest
from PIL import Image

from dashboard_backend.features.dashboard_export.schemas import DashboardConfig

THEME = {
    "primaryColor": "#3366FF",
    "backgroundColor": "#F8FAFC",
    "textColor": "#1F2937",
    "fontFamily": "Inter, sans-serif",
}


def png_data_url(size: tuple[int, int] = (16, 9), color="#3366FF", mode: str = "RGB") -> str:
    buffer = io.BytesIO()
    Image.new(mode, size, color=color).save(buffer, format="PNG")
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{payload}"


def build_dashboard(title: str = "Sales Overview", components=None) -> DashboardConfig:
    return DashboardConfig.model_validate(
        {"title": title, "theme": THEME, "components": components or []}
    )


def kpi_component(**overrides) -> dict:
    component = {
        "id": "kpi-revenue",
        "type": "kpi",
        "title": "Revenue",
        "position": {"x": 0, "y": 0},
        "size": {"width": 400, "height": 225},
        "data": {"value": 1000, "unit": "USD"},
    }
    component.update(overrides)
    return component


def chart_component(**overrides) -> dict:
    component = {
        "id": "chart-region",
        "type": "chart",
        "title": "Sales by Region",
        "position": {"x": 400, "y": 0},
        "size": {"width": 400, "height": 225},
        "data": {"datasets": [{"label": "2024", "labels": ["A", "B"], "data": [1, 2]}]},
    }
    component.update(overrides)
    return component


@pytest.fixture
def sample_dashboard() -> DashboardConfig:
    return build_dashboard("Q1 Report", [kpi_component(), chart_component()])
