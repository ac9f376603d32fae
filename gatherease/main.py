from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

# Import core components
from gatherease.core.logging_config import setup_logging
from gatherease.core.settings import settings
from gatherease.middleware.logging import LoggingMiddleware

# Import configuration
from gatherease.config import init_firebase

# Import route modules
from gatherease.routes import health, notifications, scheduled_tasks
from gatherease.exceptions import HTTPDomainException

# Set up logging first
logger = setup_logging()

_docs_enabled = settings.is_development or os.getenv("SHOW_DOCS", "").lower() in ("1", "true", "yes")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    logger.info("=" * 50)
    logger.info("GatherEase dispatch API starting up")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"CORS origins: {settings.cors_origins}")
    logger.info(f"SQL Debug: {'enabled' if settings.sql_debug else 'disabled'}")

    from gatherease.services.email import get_sendgrid_client
    from gatherease.services.push_notification import is_fcm_available
    logger.info(f"SendGrid Email: {'configured' if get_sendgrid_client() else 'not configured (skipped)'}")
    logger.info(f"WhatsApp: {'configured' if settings.whatsapp_configured else 'not configured (skipped)'}")
    logger.info(f"SMS: {'configured' if settings.sms_configured else 'not configured (skipped)'}")
    logger.info(f"Push (FCM): {'configured' if is_fcm_available() else 'not configured (skipped)'}")
    logger.info(
        f"Dispatch window: {settings.dispatch_window_minutes}min, "
        f"dedup {'enabled' if settings.dispatch_dedup_enabled else 'disabled'}"
    )
    logger.info("=" * 50)
    yield
    # Shutdown logic
    logger.info("GatherEase dispatch API shutting down gracefully")

app = FastAPI(
    title="GatherEase Dispatch API",
    description="Scheduled survey and event notifications for GatherEase events",
    version="1.0.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    lifespan=lifespan,
)

# Add middleware in correct order (last added = first executed)
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Initialize Firebase (skip in test environment)
if os.getenv("ENV") != "test":
    init_firebase()

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(scheduled_tasks.router, prefix="/scheduled", tags=["Scheduled Tasks"])
app.include_router(notifications.router)


# Exception handlers
@app.exception_handler(HTTPDomainException)
async def domain_exception_handler(request: Request, exc: HTTPDomainException):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    logger.warning(f"[{correlation_id}] {type(exc).__name__} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "correlation_id": correlation_id}
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    logger.error(f"[{correlation_id}] Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

    content = {"detail": "Internal server error", "correlation_id": correlation_id}
    if settings.is_development:
        content.update({"error": str(exc), "type": type(exc).__name__})
    return JSONResponse(status_code=500, content=content)

# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "GatherEase Dispatch API",
        "version": "1.0.0",
        "environment": settings.environment,
        "docs_url": "/docs" if _docs_enabled else None,
        "health_check": "/health",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info" if settings.is_development else "warning"
    )
