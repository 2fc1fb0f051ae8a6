"""
Roadkill Reporter - FastAPI Application Entry Point

Backend for a mobile app that lets residents report roadkill to the city.

DESIGN PRINCIPLES:
- Reports outside the service area are rejected up front
- Recent nearby reports are treated as the same incident (no duplicate tickets)
- A report is stored before the city is notified; a failed email never loses it
- Status only moves forward, and only operators move it
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.context import AppContext, build_context
from app.core.errors import RateLimited, ReportError
from app.core.settings import settings
from app.routes import city, health, reports, stats

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the FastAPI app.

    When a context is given (tests, scripts) it is used as-is; otherwise
    the startup hook builds one from settings.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Citizen roadkill reports, deduplicated and forwarded to the city",
        debug=settings.DEBUG,
    )
    app.state.context = context

    @app.exception_handler(ReportError)
    async def report_error_handler(request: Request, exc: ReportError):
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Schema errors on query/path/body use the same 400 field-list shape as report validation."""
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"] if part != "body") or "body",
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        logger.info(f"Request validation failed on {request.method} {request.url.path}: {errors}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "ValidationError", "message": "Invalid request", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch all unhandled exceptions, log the traceback, return an opaque 500."""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error", "message": "Failed to process request"},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def startup_event():
        """
        Initialize services on application startup.
        Currently: report store, notification provider, identity provider
        """
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        if app.state.context is None:
            app.state.context = build_context(settings)

    @app.on_event("shutdown")
    def shutdown_event():
        """
        Cleanup on application shutdown.
        """
        logger.info(f"Shutting down {settings.APP_NAME}")
        if app.state.context is not None:
            app.state.context.close()

    app.include_router(health.router)
    app.include_router(reports.router)
    app.include_router(city.router)
    app.include_router(stats.router)

    @app.get("/")
    def root():
        """
        Root endpoint - API information.
        """
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
