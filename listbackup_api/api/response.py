"""JSON response envelope shared by every endpoint."""

from typing import Any

from fastapi.responses import JSONResponse, Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
    "Access-Control-Allow-Credentials": "true",
}

_UNSET = object()


def envelope(
    success: bool,
    data: Any = _UNSET,
    error: str | None = None,
    message: str | None = None,
) -> dict:
    body: dict[str, Any] = {"success": success}
    if data is not _UNSET:
        body["data"] = data
    if error is not None:
        body["error"] = error
    if message is not None:
        body["message"] = message
    return body


def success_response(data: Any = _UNSET, message: str | None = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(True, data=data, message=message),
        headers=CORS_HEADERS,
    )


def created_response(data: Any = _UNSET, message: str | None = None) -> JSONResponse:
    return success_response(data, message=message, status_code=201)


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(False, error=error),
        headers=CORS_HEADERS,
    )


def preflight_response() -> Response:
    """Answer an OPTIONS preflight without touching any handler."""
    return Response(status_code=200, headers=CORS_HEADERS)
