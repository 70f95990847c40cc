"""
inala/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes (tenants, users, POS, lending, stokvel, finance, reports, email, settings)
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from inala.core.config import settings, validate_settings
from inala.core.errors import add_exception_handlers
from inala.core.logging import setup_logging, get_logger
from inala.db.mongo import connect_to_mongo, close_mongo_connection, check_database_health
from inala.db.indexes import create_indexes
from inala.api import (
    tenants, users, inventory, customers, pos, loans, stokvel, finance, reports, emails,
)
from inala.api import settings as settings_api

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.APP_NAME}...")

    try:
        validate_settings()
        logger.info("Configuration validated")

        await connect_to_mongo()
        await create_indexes()

        if not await check_database_health():
            logger.warning("Database health check failed during startup")
        else:
            logger.info("Database health check passed")

        logger.info(f"{settings.APP_NAME} started (environment={settings.ENVIRONMENT}, debug={settings.DEBUG})")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    try:
        await close_mongo_connection()
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title=settings.APP_NAME,
    description="Multi-tenant ERP for small businesses, stokvels and micro-lenders",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


# Register API routes
for module in (tenants, users, inventory, customers, pos, loans, stokvel, finance, reports, emails, settings_api):
    app.include_router(module.router, prefix=settings.API_PREFIX)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Checks database connectivity and reports overall status.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": APP_VERSION,
        "checks": {}
    }

    db_healthy = await check_database_health()
    health_status["checks"]["database"] = "healthy" if db_healthy else "unhealthy"
    health_status["checks"]["smtp"] = "configured" if settings.smtp_configured else "not_configured"
    if not db_healthy:
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


@app.get("/live", tags=["Health"])
async def liveness_check():
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inala.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
