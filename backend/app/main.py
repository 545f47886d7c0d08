from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.database import init_db, close_db
from app.core.exceptions import InnoVoiceError, error_response
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.core.security import StaffDirectory
from app.api.v1.router import api_router
from app.services.attachment_store import AttachmentStore
from app.services.presence_tracker import PresenceTracker
from app.services.priority_classifier import PriorityClassifier
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware


def validate_config():
    """Warn about configuration that silently degrades the service"""
    warnings = []

    if not settings.STAFF_ACCOUNT_MAP:
        warnings.append("STAFF_ACCOUNTS is empty - nobody can sign in to the dashboard")
    elif settings.PRIVILEGED_ROLE not in {a["role"] for a in settings.STAFF_ACCOUNT_MAP.values()}:
        warnings.append(f"No account has the '{settings.PRIVILEGED_ROLE}' role - log cleanup is unavailable")

    if not settings.ANTHROPIC_API_KEY:
        warnings.append("ANTHROPIC_API_KEY not set - priorities default to medium")

    if settings.STORAGE_MODE not in ("s3", "minio"):
        warnings.append("STORAGE_MODE is 'none' - suggestions are saved without images")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Configuration checked")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Staff accounts: {len(app.state.staff_directory)}")
    logger.info("=" * 60)

    validate_config()
    await init_db()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    classifier = app.state.priority_classifier
    if classifier.client is not None:
        await classifier.client.close()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Student suggestion intake and triage for the student government",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Components owned by the application; tests replace them via dependency overrides
app.state.limiter = limiter
app.state.staff_directory = StaffDirectory.from_settings()
app.state.presence_tracker = PresenceTracker(window_seconds=settings.PRESENCE_WINDOW_SECONDS)
app.state.priority_classifier = PriorityClassifier.from_settings()
app.state.attachment_store = AttachmentStore.from_settings()

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 1. Request logging
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit (base64 images travel in the JSON body)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_BYTES)

# 4. Default per-client rate limit (decorated routes carry their own)
app.add_middleware(SlowAPIMiddleware)

# 5. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(InnoVoiceError)
async def innovoice_exception_handler(request: Request, exc: InnoVoiceError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators
    return msg[len("Value error, "):] if msg.startswith("Value error, ") else msg


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": _clean_message(err.get("msg", "Invalid value"))}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "message": str(exc) if settings.DEBUG else "Internal server error"
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)


def run():
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
