# byte_vision/web/__init__.py
"""
Aggregates the HTTP routes into a single router.

The MCP endpoint path is configurable, so the router is built per app rather
than at import time.
"""
from fastapi import APIRouter

from byte_vision.web.routes_health import router as health_router
from byte_vision.web.routes_mcp import build_router as build_mcp_router


def build_api_router(endpoint: str) -> APIRouter:
    router = APIRouter()
    router.include_router(build_mcp_router(endpoint))
    router.include_router(health_router)
    return router
