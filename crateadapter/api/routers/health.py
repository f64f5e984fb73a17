"""Liveness and readiness probes.

None of these contact CrateDB: a CrateDB outage shows up as failed
remote read/write requests and in ``/metrics``, and must not get the
adapter restarted.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from crateadapter import __version__

router = APIRouter(prefix="/health", tags=["health"])


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime
    version: str
    table: Optional[str] = None


def _status(state: str, table: Optional[str] = None) -> HealthStatus:
    return HealthStatus(
        status=state,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        table=table,
    )


@router.get("", response_model=HealthStatus, summary="Process is up")
async def health_check() -> HealthStatus:
    """Answer as long as the process serves HTTP. Used by ``api status``."""
    return _status("healthy")


@router.get("/live", response_model=HealthStatus, summary="Liveness probe")
async def liveness_check() -> HealthStatus:
    return _status("alive")


@router.get(
    "/ready",
    response_model=HealthStatus,
    summary="Readiness probe",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthStatus}},
)
async def readiness_check(request: Request, response: Response) -> HealthStatus:
    """Ready once the adapter exists, i.e. between startup and shutdown.

    Reports the table samples are written to.
    """
    adapter = getattr(request.app.state, "adapter", None)
    if adapter is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return _status("starting")
    return _status("ready", table=adapter.table)
