"""
FastAPI Application Factory
===========================

Entry point for the Gemini proxy that sits between browser clients and the
Google Generative Language API.

Architecture:
    Browser → Gemini Proxy (this service) → generativelanguage.googleapis.com

Routes:
    - /api/gemini-2.5-flash : text generation proxy
    - /api/gemini-proxy     : image-preview generation proxy
    - /health               : Health check endpoint

Environment Variables:
    - GEMINI_API_KEY: Upstream API key (required for proxying)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (empty = allow all)
    - CLIENT_TOKEN: Shared secret expected in X-Client-Token (optional)
    - UPSTREAM_TIMEOUT_SECONDS: Client-side upstream timeout (optional)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn gemini_proxy.main:app --reload --host 0.0.0.0 --port 8080

    Vercel:
        api/index.py exports this app; vercel.json routes /api/* to it.
"""

import logging
import sys
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from . import __version__
from .config import get_settings
from .models import ErrorResponse, HealthResponse
from .proxy import proxy_router
from .proxy.cors import build_cors_headers
from .proxy.routes import PROXY_PATHS, PROXY_ROUTES

SERVICE_NAME = "gemini-proxy"


def request_cors_headers(request: Request) -> Dict[str, str]:
    """
    CORS headers for responses produced outside the proxy handler.

    Settings come from the same provider the routes use, so dependency
    overrides apply here too.
    """
    settings_provider = request.app.dependency_overrides.get(get_settings, get_settings)
    try:
        allowed_origins = settings_provider().allowed_origins_list
    except ValidationError:
        # Broken environment: the allow-list cannot be known
        return {}

    return build_cors_headers(request.headers.get("origin"), allowed_origins)


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Proxy routes
        - System endpoints
        - Exception handlers

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("gemini_proxy.main")

    app = FastAPI(
        title="Gemini Proxy",
        description="CORS-aware pass-through for the Gemini generateContent API",
        version=__version__,
        docs_url="/docs",
        redoc_url=None
    )

    # No CORSMiddleware: proxy routes attach their own CORS headers
    app.include_router(proxy_router, tags=["Gemini Proxy"])

    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Does not contact the upstream or require configuration.
        """
        return HealthResponse(service=SERVICE_NAME, version=__version__)

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """Service metadata and available endpoints."""
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "proxy": sorted(PROXY_ROUTES),
            }
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response, with CORS
        headers so browsers can read it.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="internal_server_error").to_content(),
            headers=request_cors_headers(request)
        )

    @app.exception_handler(StarletteHTTPException)
    async def proxy_http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Answer methods the proxy routes do not list with the proxy's own 405.

        Other HTTP errors keep FastAPI's default handling.
        """
        if exc.status_code != status.HTTP_405_METHOD_NOT_ALLOWED or request.url.path not in PROXY_PATHS:
            return await http_exception_handler(request, exc)

        headers = dict(exc.headers or {})
        headers.update(request_cors_headers(request))
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content=ErrorResponse(error="Only POST allowed").to_content(),
            headers=headers
        )

    logger.info(
        "Gemini proxy initialised",
        extra={
            "routes": sorted(PROXY_ROUTES),
            "cors_restricted": bool(settings.allowed_origins_list),
            "client_token_required": bool(settings.client_token),
        }
    )

    return app


# Create app instance for uvicorn and Vercel
app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "gemini_proxy.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level=get_settings().LOG_LEVEL.lower()
    )
