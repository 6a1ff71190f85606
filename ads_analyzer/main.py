"""
Ad-Spend Analyzer
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from ads_analyzer.config import get_settings
from ads_analyzer.utils.logger import log
from ads_analyzer import __version__

# Import routers
from ads_analyzer.api import analyzer, health
from ads_analyzer.middleware.security_middleware import SecurityMiddleware

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")
    log.info(f"Base currency: {settings.base_currency} ({len(settings.currency_rates)} rates configured)")

    yield

    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Ad-Spend Normalization & Performance Analysis

    Takes a raw ad export (any platform, English or French headers, any
    supported currency) plus the business context, and returns:
    - Detected column mapping
    - Spend normalized to the base currency
    - Campaign and ad-set KPIs (CTR, CPC, conversion rate, CPA, ROAS)
    - SCALE / OPTIMISER / STOP decision per bucket
    - Global verdict, conclusions and action plan
    - Optional AI narrative using Claude
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Security middleware (Basic Auth gate, X-Robots-Tag, Cache-Control)
app.add_middleware(SecurityMiddleware)

# Gzip compression for large campaign lists
app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(analyzer.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Block all crawlers"""
    return "User-agent: *\nDisallow: /\n"


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "app": settings.app_name,
        "version": __version__,
        "description": "Ad-spend normalization and performance analysis",
        "docs": "/docs",
        "health": "/health",
        "status": "/status",
        "endpoints": {
            "analyze": "POST /analyze",
            "currencies": "GET /currencies",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ads_analyzer.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
