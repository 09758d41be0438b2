from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from app.core.log_buffer import get_log_entries, get_request_entries
from app.core.metrics import metrics

router = APIRouter(prefix="/metrics", tags=["metrics"])


def _serialize_recent_requests(limit: int) -> list[dict[str, Any]]:
    return [
        {
            "timestamp": entry.timestamp.isoformat(),
            "method": entry.method,
            "path": entry.path,
            "status": entry.status,
            "duration_ms": entry.duration_ms,
        }
        for entry in reversed(get_request_entries(limit))
    ]


def _serialize_recent_logs(limit: int) -> list[dict[str, Any]]:
    return [
        {
            "timestamp": entry.timestamp.isoformat(),
            "level": entry.level,
            "logger": entry.logger,
            "message": entry.message,
            "details": entry.details,
        }
        for entry in reversed(get_log_entries(limit))
    ]


@router.get("", summary="Pricing metrics snapshot")
def metrics_root(limit: int = Query(default=20, ge=1, le=200)) -> dict[str, Any]:
    return {
        "pricing": metrics.snapshot(),
        "recent_requests": _serialize_recent_requests(limit),
        "recent_logs": _serialize_recent_logs(limit),
    }
