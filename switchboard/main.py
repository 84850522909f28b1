"""
Lead Switchboard - Main Application Entry Point

Receives CRM lead webhooks, places outbound AI calls through Bland or Vapi,
and tracks call outcomes from provider callbacks.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from switchboard import __version__
from switchboard.core.config import settings
from switchboard.core.logging import setup_logging, get_logger
from switchboard.core.exceptions import (
    SwitchboardException,
    AuthenticationError,
    RateLimitError
)
from switchboard.api.routes import admin, webhooks, health
from switchboard.db import initialize_database, close_database
from switchboard.services.scheduler import shutdown_dispatch_scheduler

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup and shutdown events
    """
    # Startup
    logger.info("=" * 60)
    logger.info("Starting Lead Switchboard")
    logger.info(f"Version: {__version__}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Public Base URL: {settings.public_base_url or '(not set)'}")
    logger.info(f"Database Type: {settings.database_type}")
    logger.info(f"Dispatch Scheduler: {settings.dispatch_scheduler}")
    logger.info("=" * 60)

    if await initialize_database():
        logger.info(f"Database ({settings.database_type}) initialized successfully")
    else:
        logger.error("Database initialization failed; health checks will report unhealthy")

    yield

    # Shutdown
    logger.info("Shutting down Lead Switchboard")

    await shutdown_dispatch_scheduler()

    await close_database()
    logger.info("Database connection closed")

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Lead Switchboard API",
    description="""
    ## Lead-to-Call Switchboard

    Turns inbound CRM leads into outbound AI voice calls.

    ### Features

    - **Lead Webhooks**: `POST /webhook/{source}/{tenant_id}` from GoHighLevel or any CRM
    - **Deduplication**: repeated webhooks within the dedupe window are ignored
    - **Quiet Hours**: per-tenant local quiet hours with a fresh-submission bypass
    - **Providers**: Bland and Vapi, chosen per tenant routing policy
    - **Callbacks**: `POST /webhook/{provider}` with idempotent status updates
    - **Audit Log**: every decision is recorded per tenant

    ### Authentication

    Admin endpoints under `/api/v1` require the admin key:
    - Header: `X-API-Key: your-admin-key`
    - Bearer Token: `Authorization: Bearer your-admin-key`
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Custom Exception Handlers
@app.exception_handler(SwitchboardException)
async def switchboard_exception_handler(request: Request, exc: SwitchboardException):
    """Handle custom switchboard exceptions"""
    logger.warning(f"SwitchboardException: {exc.error_code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


@app.exception_handler(AuthenticationError)
async def auth_exception_handler(request: Request, exc: AuthenticationError):
    """Handle authentication errors"""
    logger.warning(f"AuthenticationError: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"WWW-Authenticate": "Bearer"}
    )


@app.exception_handler(RateLimitError)
async def rate_limit_exception_handler(request: Request, exc: RateLimitError):
    """Handle rate limit errors"""
    logger.warning(f"RateLimitError: {exc.message}")
    retry_after = exc.details.get("retry_after_seconds", 60)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"Retry-After": str(retry_after)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": {"exception": str(exc)} if settings.debug else {}
        }
    )


# Include routers
app.include_router(health.router)
app.include_router(webhooks.router)
app.include_router(admin.router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    """Service information"""
    return {
        "service": "Lead Switchboard",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "leads": "/webhook/{source}/{tenant_id}",
            "callbacks": "/webhook/{provider}",
            "admin": "/api/v1"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "switchboard.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug
    )
