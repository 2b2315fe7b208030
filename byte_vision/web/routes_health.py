# byte_vision/web/routes_health.py
"""
Liveness and usage statistics.
"""
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", tags=["Health"])
async def health(request: Request) -> Dict[str, Any]:
    """Report whether the server is accepting work, plus request metrics."""
    service = request.app.state.completion_service
    shutdown_ctx = request.app.state.shutdown_context
    return {
        "status": "shutting_down" if shutdown_ctx.done else "ok",
        "metrics": service.metrics.snapshot(),
    }
