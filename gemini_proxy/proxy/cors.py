"""
CORS Policy
===========

Computes the CORS response headers for a request origin. The same headers
go on preflight, success and error responses alike.

Rules:
------
- Empty allow-list: any origin is allowed; the request origin is echoed,
  or ``*`` when the request carries none.
- Non-empty allow-list: exact string match only, plus ``null``
  (sent by pages opened from file://).
- Denied: no Access-Control-Allow-Origin header at all.
"""

from typing import Dict, Optional, Sequence

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-Client-Token"
NULL_ORIGIN = "null"


def resolve_allow_origin(
    origin: Optional[str],
    allowed_origins: Sequence[str]
) -> Optional[str]:
    """
    Decide the Access-Control-Allow-Origin value.

    Args:
        origin: Request Origin header (None or "" when absent)
        allowed_origins: Configured allow-list, possibly empty

    Returns:
        Header value to emit, or None if the origin is denied
    """
    origin = origin or ""

    if not allowed_origins:
        return origin or "*"

    if origin in allowed_origins or origin == NULL_ORIGIN:
        return origin

    return None


def build_cors_headers(
    origin: Optional[str],
    allowed_origins: Sequence[str]
) -> Dict[str, str]:
    """
    Build the CORS headers attached to every proxy response.

    Args:
        origin: Request Origin header
        allowed_origins: Configured allow-list

    Returns:
        Headers dict (allow-origin only present when permitted)
    """
    headers = {
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Vary": "Origin",
    }

    allow_origin = resolve_allow_origin(origin, allowed_origins)
    if allow_origin:
        headers["Access-Control-Allow-Origin"] = allow_origin

    return headers
