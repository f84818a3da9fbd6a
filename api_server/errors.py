"""Error kinds and the JSON error envelope.

Every failure leaving the API has the shape::

    {"error": {"message": ..., "code": ..., "timestamp": ..., "details": {...}}}

``details`` (stack, path, method) is only present when detailed errors are
enabled in settings.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

class ErrorKind(Enum):
    BAD_REQUEST = (400, "BAD_REQUEST", "Bad Request")
    NOT_FOUND = (404, "NOT_FOUND", "Not Found")
    METHOD_NOT_ALLOWED = (405, "METHOD_NOT_ALLOWED", "Method Not Allowed")
    VALIDATION_ERROR = (422, "VALIDATION_ERROR", "Request validation failed")
    METRICS_DISABLED = (404, "METRICS_DISABLED", "Metrics endpoint is disabled")
    INTERNAL_ERROR = (500, "INTERNAL_ERROR", "Internal Server Error")

    def __init__(self, status: int, code: str, default_message: str):
        self.status = status
        self.code = code
        self.default_message = default_message

    @classmethod
    def for_status(cls, status: int) -> "ErrorKind":
        # METRICS_DISABLED shares 404 but is only raised explicitly
        for kind in (cls.BAD_REQUEST, cls.NOT_FOUND, cls.METHOD_NOT_ALLOWED, cls.VALIDATION_ERROR):
            if kind.status == status:
                return kind
        return cls.BAD_REQUEST if 400 <= status < 500 else cls.INTERNAL_ERROR

class ApiError(Exception):
    """Raised by route handlers; rendered by the API error handler."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)

    @property
    def status(self) -> int:
        return self.kind.status

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def error_body(
    kind: ErrorKind,
    message: str | None = None,
    details: dict[str, object] | None = None,
) -> dict[str, object]:
    error: dict[str, object] = {
        "message": message or kind.default_message,
        "code": kind.code,
        "timestamp": now_iso(),
    }
    if details is not None:
        error["details"] = details
    return {"error": error}

# Handlers
def install_error_handlers(app: FastAPI, *, detailed: bool) -> None:
    log = logging.getLogger(__name__)

    def respond(request: Request, exc: Exception, kind: ErrorKind, message: str | None, status: int) -> JSONResponse:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        log.error(
            message or kind.default_message,
            extra={
                "event": "http.error",
                "extra_fields": {
                    "code": kind.code,
                    "status": status,
                    "path": request.url.path,
                    "method": request.method,
                    "stack": stack,
                },
            },
        )
        details = None
        # METRICS_DISABLED never carries details
        if detailed and kind is not ErrorKind.METRICS_DISABLED:
            details = {"stack": stack, "path": request.url.path, "method": request.method}
        return JSONResponse(error_body(kind, message, details), status_code=status)

    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError):
        return respond(request, exc, exc.kind, exc.message, exc.status)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        kind = ErrorKind.for_status(exc.status_code)
        message = exc.detail if isinstance(exc.detail, str) else None
        return respond(request, exc, kind, message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return respond(request, exc, ErrorKind.VALIDATION_ERROR, None, ErrorKind.VALIDATION_ERROR.status)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        return respond(request, exc, ErrorKind.INTERNAL_ERROR, str(exc) or None, ErrorKind.INTERNAL_ERROR.status)
