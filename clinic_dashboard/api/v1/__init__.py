"""API v1 router configuration."""

from fastapi import APIRouter

from .dashboard import router as dashboard_router

# Create the main API router
api_router = APIRouter()

# Health check endpoint
@api_router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "message": "Clinic Dashboard Metrics is running"}

# Include routers
api_router.include_router(dashboard_router, tags=["dashboard"])
