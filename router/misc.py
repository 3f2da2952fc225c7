from datetime import datetime

from fastapi import APIRouter

from core.config import settings

router = APIRouter()


@router.get("/health", summary="Health check")
async def health_check():
    """Check that the service is running"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.app_version,
    }


@router.get("/", summary="Root")
async def root():
    return {
        "message": "OSM traffic analysis API",
        "docs": "/docs",
        "health": "/health",
        "analysis": "/api/traffic-analysis",
    }
