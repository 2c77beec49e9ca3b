from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ExportFormat(str, Enum):
    """Closed set of artifact types the export pipeline can produce."""

    JPEG = "jpeg"
    PNG = "png"
    PDF = "pdf"
    PPTX = "pptx"
    HTML = "html"


class Position(BaseModel):
    x: float
    y: float

    model_config = ConfigDict(frozen=True)


class Size(BaseModel):
    width: float
    height: float

    model_config = ConfigDict(frozen=True)


class Theme(BaseModel):
    """Colour and font tokens applied to every exported artifact."""

    primary_color: str = Field(..., alias="primaryColor")
    background_color: str = Field(..., alias="backgroundColor")
    text_color: str = Field(..., alias="textColor")
    font_family: str = Field(..., alias="fontFamily")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ChartDataset(BaseModel):
    label: Optional[str] = None
    labels: Optional[List[str]] = None
    data: List[float] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ChartData(BaseModel):
    datasets: List[ChartDataset] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class KpiData(BaseModel):
    value: Union[int, float, str]
    unit: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def formatted_value(self) -> str:
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


class DashboardComponent(BaseModel):
    """A positioned visual element on the 800x450 logical canvas."""

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Component kind, e.g. 'chart' or 'kpi'")
    title: Optional[str] = None
    position: Position
    size: Size
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def chart_data(self) -> ChartData:
        return ChartData.model_validate(self.data or {})

    def kpi_data(self) -> KpiData:
        return KpiData.model_validate(self.data or {})


class DashboardConfig(BaseModel):
    """Fully formed dashboard layout handed to the export pipeline."""

    title: str
    theme: Theme
    components: List[DashboardComponent] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class RenderSurfacePayload(BaseModel):
    """Materialised rendering of the dashboard supplied by the client.

    Either ``dataUrl`` (a screenshot captured in the browser) or ``html`` (a
    serialised DOM snapshot rendered server-side) must be present. When a
    screenshot arrives without its CSS size, ``pixelRatio`` recovers it from
    the bitmap dimensions.
    """

    data_url: Optional[str] = Field(default=None, alias="dataUrl")
    html: Optional[str] = None
    width: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    pixel_ratio: Optional[float] = Field(default=None, alias="pixelRatio", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class DashboardExportRequest(BaseModel):
    """Payload accepted by ``POST /api/dashboard/export``."""

    dashboard: DashboardConfig
    format: str = Field(..., min_length=1)
    surface: Optional[RenderSurfacePayload] = None


class ExportSuccess(BaseModel):
    success: Literal[True] = True
    download_url: str = Field(..., alias="downloadUrl")
    filename: str
    clipboard_copied: Optional[bool] = Field(default=None, alias="clipboardCopied")

    model_config = ConfigDict(populate_by_name=True)


class ExportFailure(BaseModel):
    success: Literal[False] = False
    error: str


ExportResponse = Union[ExportSuccess, ExportFailure]
