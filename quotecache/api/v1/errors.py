"""Global error handlers — every failure leaves as {"error": {...}, "timestamp": ...}."""
from datetime import datetime, timezone

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from quotecache.core.result import Error, ErrorKind, Outcome, status_for

logger = structlog.get_logger()


class ApiError(Exception):
    """Raised by route handlers to turn a failed Outcome into an HTTP response."""

    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error


def unwrap(outcome: Outcome):
    if outcome.is_failure:
        raise ApiError(outcome.error)
    return outcome.value


def error_body(code: str, message: str, details: str | None = None) -> dict:
    return {
        "error": {"code": code, "message": message, "details": details},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def error_response(error: Error) -> JSONResponse:
    status = status_for(error)
    details = f"Upstream responded with {error.status_code}" if error.status_code else None
    logger.warning("request.failed", code=error.code, message=error.message, status=status)
    return JSONResponse(status_code=status, content=error_body(error.code, error.message, details))


async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.error)


async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content=error_body(ErrorKind.VALIDATION.value, str(exc)),
    )
