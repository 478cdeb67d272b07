"""
Proxy Routes - Gemini Request Forwarding
========================================

This module implements the proxy endpoints that forward browser requests to
the Google Generative Language API.

Request Flow:
-------------
1. OPTIONS preflight is answered with 204
2. Any method other than POST is rejected with 405
3. GEMINI_API_KEY must be configured (500 otherwise)
4. X-Client-Token must match CLIENT_TOKEN when one is configured (401)
5. Body must be JSON (400); generationConfig.response_mime_type is stripped
6. Body is POSTed upstream with the x-goog-api-key header
7. Upstream status, content-type and body are relayed unchanged

CORS headers are attached to every response, errors included.

Endpoints:
----------
- /api/gemini-2.5-flash: text generation
- /api/gemini-proxy: image-preview generation
"""

import hmac
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..models import ErrorResponse
from .cors import build_cors_headers
from .sanitize import InvalidJSONBody, parse_json_body, sanitize_body

logger = logging.getLogger(__name__)

UPSTREAM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
TEXT_MODEL = "gemini-2.5-flash"
IMAGE_PREVIEW_MODEL = "gemini-2.5-flash-image-preview"

# Methods routed to the handler; any other method is answered with the same
# 405 by the HTTP exception handler in main.py
HANDLED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

proxy_router = APIRouter()


def upstream_url(model: str) -> str:
    """Build the generateContent URL for a model."""
    return f"{UPSTREAM_BASE_URL}/{model}:generateContent"


# ============================================================================
# Dependencies
# ============================================================================

async def get_upstream_client(
    settings: Settings = Depends(get_settings)
) -> AsyncIterator[httpx.AsyncClient]:
    """
    Dependency providing an HTTP client for a single invocation.

    The client is closed when the request finishes.
    """
    timeout = httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client


# ============================================================================
# Helpers
# ============================================================================

def error_response(
    status_code: int,
    error: str,
    cors_headers: Dict[str, str],
    detail: Optional[str] = None
) -> JSONResponse:
    """Build a JSON error response carrying the CORS headers."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).to_content(),
        headers=cors_headers
    )


def is_authorized(settings: Settings, supplied_token: str) -> bool:
    """
    Check the X-Client-Token header against CLIENT_TOKEN.

    Always true when no token is configured.
    """
    required = settings.client_token
    if not required:
        return True

    return hmac.compare_digest(
        (supplied_token or "").encode("utf-8"),
        required.encode("utf-8")
    )


def build_upstream_headers(settings: Settings) -> Dict[str, str]:
    """Headers for the upstream request; the API key travels only here."""
    return {
        "Content-Type": "application/json",
        "x-goog-api-key": settings.api_key,
    }


# ============================================================================
# Proxy Handler
# ============================================================================

async def proxy_request(
    request: Request,
    endpoint: str,
    settings: Settings,
    client: httpx.AsyncClient
) -> Response:
    """
    Admit, sanitize and forward one request to ``endpoint``.

    Args:
        request: Inbound request
        endpoint: Upstream generateContent URL
        settings: Configuration read for this request
        client: HTTP client for the upstream call

    Returns:
        Upstream response relayed as-is, or a JSON error from the proxy
    """
    cors_headers = build_cors_headers(
        request.headers.get("origin"),
        settings.allowed_origins_list
    )

    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=cors_headers)

    if request.method != "POST":
        return error_response(
            status.HTTP_405_METHOD_NOT_ALLOWED,
            "Only POST allowed",
            cors_headers
        )

    if not settings.api_key:
        logger.error("GEMINI_API_KEY is not configured")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server misconfigured: missing GEMINI_API_KEY",
            cors_headers
        )

    if not is_authorized(settings, request.headers.get("x-client-token", "")):
        logger.warning(
            "Rejected request with missing or invalid client token",
            extra={"path": request.url.path}
        )
        return error_response(
            status.HTTP_401_UNAUTHORIZED,
            "Unauthorized",
            cors_headers
        )

    try:
        body = parse_json_body(await request.body())
    except InvalidJSONBody:
        logger.info("Rejected request with invalid JSON body", extra={"path": request.url.path})
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid JSON",
            cors_headers
        )

    payload = sanitize_body(body)

    try:
        upstream = await client.post(
            endpoint,
            content=json.dumps(payload, allow_nan=False),
            headers=build_upstream_headers(settings)
        )
    except httpx.RequestError as e:
        detail = str(e) or type(e).__name__
        logger.error(
            f"Upstream request failed: {detail}",
            extra={"endpoint": endpoint, "exception_type": type(e).__name__}
        )
        return error_response(
            status.HTTP_502_BAD_GATEWAY,
            "Upstream fetch failed",
            cors_headers,
            detail=detail
        )

    logger.info(
        "Relayed upstream response",
        extra={"endpoint": endpoint, "status_code": upstream.status_code}
    )

    headers = dict(cors_headers)
    headers["Content-Type"] = upstream.headers.get("content-type") or "application/json"

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=headers
    )


def make_proxy_endpoint(endpoint: str) -> Callable[..., Awaitable[Response]]:
    """
    Create a route handler bound to one upstream URL.

    Both routes share proxy_request and differ only in ``endpoint``.
    """
    async def proxy_endpoint(
        request: Request,
        settings: Settings = Depends(get_settings),
        client: httpx.AsyncClient = Depends(get_upstream_client)
    ) -> Response:
        return await proxy_request(request, endpoint, settings, client)

    return proxy_endpoint


# ============================================================================
# Proxy Endpoints
# ============================================================================

PROXY_ROUTES = {
    "/api/gemini-2.5-flash": upstream_url(TEXT_MODEL),
    "/api/gemini-proxy": upstream_url(IMAGE_PREVIEW_MODEL),
}

# Paths served by the proxy handler, with and without a trailing slash.
PROXY_PATHS = frozenset(
    variant for path in PROXY_ROUTES for variant in (path, path + "/")
)

for _path, _endpoint in PROXY_ROUTES.items():
    _handler = make_proxy_endpoint(_endpoint)
    _name = _path.rsplit("/", 1)[-1]
    proxy_router.add_api_route(
        _path,
        _handler,
        methods=HANDLED_METHODS,
        name=f"proxy:{_name}"
    )
    proxy_router.add_api_route(
        _path + "/",
        _handler,
        methods=HANDLED_METHODS,
        name=f"proxy:{_name}:slash",
        include_in_schema=False
    )
