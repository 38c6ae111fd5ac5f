"""Health, readiness and metrics endpoints"""

import os
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from tokengate.infrastructure.logging import get_logger
from tokengate.infrastructure.metrics import render_metrics

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

_start_time = time.time()


@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": "tokengate",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.time() - _start_time, 2),
    }


@router.get("/ready")
async def ready(request: Request):
    checks = {}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = {"healthy": True, "message": "In-memory store"}
    else:
        try:
            await db.ping()
            checks["database"] = {"healthy": True, "message": "Database reachable"}
        except Exception as e:
            logger.error("readiness_database_failed", error=str(e))
            checks["database"] = {"healthy": False, "message": "Database unreachable"}

    content_root = request.app.state.resolver.root
    readable = content_root.is_dir() and os.access(content_root, os.R_OK)
    checks["content_root"] = {
        "healthy": readable,
        "message": "Content root readable" if readable else "Content root not readable",
    }

    all_healthy = all(check["healthy"] for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if all_healthy else "not_ready", "checks": checks},
    )


@router.get("/metrics", include_in_schema=False)
async def metrics(request: Request):
    if not request.app.state.settings.metrics_enabled:
        return JSONResponse(status_code=404, content={"detail": "Not Found"})
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
