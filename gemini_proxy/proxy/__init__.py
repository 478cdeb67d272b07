"""
Proxy Package
=============

This package implements the endpoints that forward browser requests
to the Gemini generateContent API.

Main Components:
----------------
- routes.py: FastAPI router with the proxy endpoints and upstream forwarding
- cors.py: CORS header evaluation (allow-list, "null" origin)
- sanitize.py: JSON body parsing and field stripping

Usage:
------
    from gemini_proxy.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .routes import proxy_router

__all__ = ["proxy_router"]
