from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
from typing import Optional
from feedback_api.core.config import Settings, get_settings
from feedback_api.core.logging import logger, setup_logging
from feedback_api.core.exceptions import (
    FeedbackAPIError,
    feedback_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from feedback_api.api.v1.api import api_router
from feedback_api.database import close_database


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Raises ConfigurationError when DATABASE_URL is missing."""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Feedback collection API",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
    )

    # Add exception handlers
    app.add_exception_handler(FeedbackAPIError, feedback_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        request_id = str(uuid.uuid4())

        # Add request ID to request state
        request.state.request_id = request_id

        logger.info(
            f"Request: {request.method} {request.url}",
            extra={"request_id": request_id}
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"Response: {response.status_code} - {process_time:.3f}s",
            extra={"request_id": request_id}
        )

        # Add request ID to response headers
        response.headers["X-Request-ID"] = request_id

        return response

    # Include API routes
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.on_event("startup")
    async def startup_event():
        """Log startup. The database connects lazily on the first request."""
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on application shutdown."""
        logger.info("Application shutting down")
        await close_database()

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if settings.DEBUG else "disabled"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT
        }

    return app


app = create_app()
