"""JSON response envelope shared by all routes."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse


def success(data: Any, *, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})
