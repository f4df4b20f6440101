from __future__ import annotations

from fastapi import APIRouter, Response, status

from livefloor.infrastructure.cache.redis_client import ping_redis, redis_configured
from livefloor.infrastructure.db.session import ping_database

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    database_ready = ping_database(timeout_seconds=1.0)
    # the change feed is optional; displays fall back to periodic refresh
    redis_ready = ping_redis(timeout_seconds=1.0) if redis_configured() else None

    if database_ready and redis_ready is not False:
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "unavailable",
        "checks": {"database": database_ready, "redis": redis_ready},
    }
