from __future__ import annotations

from fastapi import APIRouter

from src.api.auth import router as auth_router
from src.api.health import router as health_router
from src.api.performance_records import router as performance_records_router
from src.api.reports import router as reports_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(performance_records_router)
api_router.include_router(reports_router)
