from __future__ import annotations

from fastapi import APIRouter

from .routes import router as dashboard_export_routes

router = APIRouter()
router.include_router(dashboard_export_routes)
