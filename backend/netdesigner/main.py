from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from netdesigner.core.config import settings, DEFAULT_JWT_SECRET
from netdesigner.core.database import init_db, close_db
from netdesigner.core.exceptions import NetDesignerError, ValidationError, error_response, validation_messages
from netdesigner.core.logging_config import logger
from netdesigner.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from netdesigner.core.rate_limiter import limiter, rate_limit_exceeded_handler
from netdesigner.api.v1.router import api_router
from netdesigner.services.scheduler import scheduler
from slowapi.errors import RateLimitExceeded
import netdesigner.models  # Import models so metadata knows about them


def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if settings.is_production and (not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET):
        errors.append("JWT_SECRET_KEY is not set or using default value")

    if not settings.PAYSTACK_SECRET_KEY:
        warnings.append("PAYSTACK_SECRET_KEY not set - billing endpoints will fail")

    if not settings.FIREBASE_PROJECT_ID:
        warnings.append("FIREBASE_PROJECT_ID not set - identity provider login disabled")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown"""
    logger.info("=" * 50)
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    logger.info("=" * 50)

    validate_critical_config()
    await init_db()
    logger.info("[Startup] Database tables ready")

    if not settings.TESTING:
        await scheduler.start()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    await scheduler.stop()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Network design platform: requirements capture, topology, equipment, configurations and reports",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_UPLOAD_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(NetDesignerError)
async def netdesigner_exception_handler(request: Request, exc: NetDesignerError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=request.url.path)
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """All field errors at once, as a 400 ValidationError"""
    error = ValidationError("Validation failed", errors=validation_messages(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error_response(error))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


# Include API router
app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

# Locally stored uploads and reports
if settings.STORAGE_MODE == "local":
    settings.upload_path.mkdir(parents=True, exist_ok=True)
    app.mount(settings.PUBLIC_UPLOAD_URL, StaticFiles(directory=str(settings.upload_path)), name="uploads")


def run():
    import uvicorn
    uvicorn.run(
        "netdesigner.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
