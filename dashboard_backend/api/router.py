from fastapi import APIRouter

from dashboard_backend.features.dashboard_export.endpoint import router as dashboard_export_router

api_router = APIRouter()
api_router.include_router(dashboard_export_router)
