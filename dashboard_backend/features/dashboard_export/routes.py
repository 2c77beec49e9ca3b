from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from dashboard_backend.core.observability import timing_dependency_factory

from .export import export_dashboard
from .schemas import DashboardExportRequest, ExportResponse
from .surface import build_surface

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard Export"],
    dependencies=[Depends(timing_dependency_factory(__name__))],
)


@router.post("/export", response_model=ExportResponse, response_model_exclude_none=True)
async def export_dashboard_endpoint(payload: DashboardExportRequest) -> ExportResponse:
    """Export the dashboard as jpeg, png, pdf, pptx or html.

    Both outcomes are returned with HTTP 200; ``success`` tells them apart.
    """
    logger.info(
        "Starting %s export for %r with %d component(s)",
        payload.format,
        payload.dashboard.title,
        len(payload.dashboard.components),
    )
    surface = build_surface(payload.surface)
    return await export_dashboard(payload.dashboard, payload.format, surface)
