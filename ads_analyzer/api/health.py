"""
Health check and status endpoints
"""
from fastapi import APIRouter
from datetime import datetime
from ads_analyzer.config import get_settings
from ads_analyzer import __version__

settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Get system status"""
    from ads_analyzer.api.analyzer import get_narrator

    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "base_currency": settings.base_currency,
        "currencies": sorted(settings.currency_rates),
        "features": {
            "llm_narrative": get_narrator() is not None,
        },
        "timestamp": datetime.utcnow().isoformat()
    }
