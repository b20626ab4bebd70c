"""Health route with request counters."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from visionfetch.api.routes._envelope import success

router = APIRouter()


@router.get("/health")
def health(request: Request):
    snapshot = request.app.state.metrics.snapshot()
    return success(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            **snapshot.to_dict(),
        }
    )
