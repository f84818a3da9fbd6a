import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from .errors import ApiError, ErrorKind, now_iso
from .exposition import PROMETHEUS_CONTENT_TYPE, to_json, to_prometheus

# Sample payloads
SAMPLE_USERS: list[dict[str, str]] = [
    {"id": "1", "name": "Alice Johnson", "email": "alice@example.com", "createdAt": "2024-01-01T00:00:00.000Z"},
    {"id": "2", "name": "Bob Smith", "email": "bob@example.com", "createdAt": "2024-01-02T00:00:00.000Z"},
    {"id": "3", "name": "Charlie Brown", "email": "charlie@example.com", "createdAt": "2024-01-03T00:00:00.000Z"},
]

SAMPLE_DATA: list[dict[str, object]] = [
    {
        "id": "1",
        "value": "Sample data item 1",
        "timestamp": "2024-01-01T10:00:00.000Z",
        "metadata": {"type": "example", "priority": "high"},
    },
    {
        "id": "2",
        "value": "Sample data item 2",
        "timestamp": "2024-01-01T11:00:00.000Z",
        "metadata": {"type": "example", "priority": "medium"},
    },
    {
        "id": "3",
        "value": "Sample data item 3",
        "timestamp": "2024-01-01T12:00:00.000Z",
        "metadata": {"type": "example", "priority": "low"},
    },
]

# Endpoints
router = APIRouter()

@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "timestamp": now_iso(),
        "version": settings.version,
        "uptime": int(time.time() - request.app.state.started_at),
        "environment": settings.environment,
    }

@router.get("/api/users")
async def list_users():
    return {"users": SAMPLE_USERS, "count": len(SAMPLE_USERS)}

@router.get("/api/data")
async def list_data():
    return {"data": SAMPLE_DATA, "count": len(SAMPLE_DATA)}

@router.get("/metrics")
async def metrics(request: Request):
    if not request.app.state.settings.enable_metrics:
        raise ApiError(ErrorKind.METRICS_DISABLED)

    summary = request.app.state.stats.snapshot()
    if "application/json" in request.headers.get("accept", ""):
        return JSONResponse(to_json(summary))
    return Response(to_prometheus(summary), media_type=PROMETHEUS_CONTENT_TYPE)
