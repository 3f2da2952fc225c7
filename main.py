"""
FastAPI application entry point.
Creates the app, installs middleware and exception handlers, mounts routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings
from core.exceptions import BizError
from router import misc_router, traffic_router

# ==================== Logging ====================
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application lifecycle"""
    logger.info("=" * 50)
    logger.info("Starting traffic analysis service...")
    logger.info(f"Overpass endpoints: {', '.join(settings.overpass_endpoints)}")
    logger.info(f"Max radius: {settings.max_radius_miles} miles, road geometry: {settings.road_geometry_mode}")
    logger.info("=" * 50)
    try:
        yield
    finally:
        logger.info("Traffic analysis service stopped")

# ==================== FastAPI app ====================
app = FastAPI(
    title="OSM Traffic Analysis API",
    description="Derives road network and traffic infrastructure metrics around a point from OpenStreetMap data",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    logger.error(f"Validation Error: {exc.body}")
    logger.error(f"Errors: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "body": exc.body},
    )

@app.exception_handler(BizError)
async def biz_exception_handler(request, exc: BizError):
    logger.error(f"BizError: {exc.message} | Payload: {exc.payload}")
    return JSONResponse(
        status_code=exc.code,
        content={
            "success": False,
            "error": exc.message,
        },
    )

# ==================== Routers ====================

app.include_router(misc_router)
app.include_router(traffic_router)

# ==================== Entry point ====================

if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting FastAPI app on http://localhost:{settings.app_port}")
    logger.info(f"API docs: http://localhost:{settings.app_port}/docs")

    uvicorn.run(
        "main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=True,
        log_level="info"
    )
