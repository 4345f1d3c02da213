from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from http import HTTPStatus

# Import core components
from app.core.logging_config import setup_logging
from app.core.settings import settings
from app.middleware.logging import LoggingMiddleware

# Import configuration
from app.config import init_firebase

# Import route modules
from app.routes import health, push_service, scheduled_tasks
from app.exceptions import PushServiceException, ErrorKind, STATUS_BY_KIND
from app.schemas.push_notification import StatusResponse

# Set up logging first
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    logger.info("=" * 50)
    logger.info("🚀 Push Service API starting up")
    logger.info(f"📁 Environment: {settings.environment}")
    logger.info(f"🌐 CORS origins: {settings.cors_origins}")
    logger.info(f"🗑️ Token retention: {settings.token_retention_days} days")

    # Initialize Firebase (skip in test environment)
    if not settings.is_test:
        fcm_status = "✅ configured" if init_firebase() else "❌ not configured"
        logger.info(f"📨 Firebase Cloud Messaging: {fcm_status}")
    logger.info("=" * 50)

    yield
    # Shutdown logic
    logger.info("🛑 Push Service API shutting down gracefully")

app = FastAPI(
    title="Push Service API",
    description="Registers FCM device tokens and delivers push notifications to users",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    lifespan=lifespan,
)

# Add middleware in correct order (last added = first executed)
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(push_service.router, prefix="/api/pushservice/v1", tags=["Push Service"])
app.include_router(scheduled_tasks.router, prefix="/scheduled", tags=["Scheduled"])


def _status_response(status: HTTPStatus, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.value,
        content=jsonable_encoder(StatusResponse.of(status, message)),
    )


def _field_error_message(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    field = ".".join(loc) or "body"
    absent = error.get("type") == "missing" or (
        error.get("type") == "string_type" and error.get("input") is None
    )
    message = "may not be blank" if absent else error.get("msg", "is invalid")
    return f"{field} {message}"


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    message = ", ".join(_field_error_message(e) for e in exc.errors())
    logger.warning(f"[{correlation_id}] Validation error on {request.url.path}: {message}")
    return _status_response(STATUS_BY_KIND[ErrorKind.invalid_input], message)

@app.exception_handler(PushServiceException)
async def push_service_exception_handler(request: Request, exc: PushServiceException):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    logger.warning(f"[{correlation_id}] {exc.kind.value} on {request.url.path}: {exc.detail}")
    return _status_response(exc.status, exc.detail)

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    correlation_id = getattr(request.state, 'correlation_id', 'unknown')
    logger.error(f"[{correlation_id}] Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)
    return _status_response(STATUS_BY_KIND[ErrorKind.unexpected], "Unexpected error")

# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Push Service API",
        "version": "1.0.0",
        "environment": settings.environment,
        "docs_url": "/docs" if settings.docs_enabled else None,
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
