"""Health check endpoints.

Provides a liveness probe and a readiness probe reporting how many device
routes were compiled at startup. The readiness probe never contacts a
device.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from restate.core.routes import RouteTable
from restate.routers.devices import get_route_table

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Basic liveness health check.

    Returns:
        Status message (always returns 200 OK if service is running)
    """
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check(table: RouteTable = Depends(get_route_table)) -> JSONResponse:
    """Readiness check.

    Returns:
        HTTP 200 when device routes are mounted, HTTP 503 otherwise
    """
    ready = len(table) > 0
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if ready else "no_routes", "routes": len(table)},
    )
