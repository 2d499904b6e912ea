"""API routes."""

from fastapi import APIRouter

from chatpulse.api.routes import analytics

api_router = APIRouter()

# Protected routes (auth required)
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
