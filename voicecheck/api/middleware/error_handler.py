"""
Error envelope for the VoiceCheck HTTP surface.

Every failure leaves the API as an ``ErrorResponse`` (``detail``, ``code``,
``timestamp``). Domain errors keep their own code and status; malformed
requests answer 422; anything else is a bare 500 with the trace in the log.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voicecheck.core.exceptions import VoiceCheckError
from voicecheck.core.models import ErrorResponse

logger = logging.getLogger(__name__)

# OpenAPI documentation for the envelope, shared by the routers
ERROR_RESPONSES: dict[int | str, dict] = {
    404: {"model": ErrorResponse, "description": "No active session or unknown log record"},
    409: {"model": ErrorResponse, "description": "Trigger not legal in the current state"},
    422: {"model": ErrorResponse, "description": "Malformed request"},
}


def _envelope(
    status_code: int, detail: str, code: str, timestamp: str | None = None
) -> JSONResponse:
    body = ErrorResponse(
        detail=detail,
        code=code,
        timestamp=timestamp or datetime.now(UTC).isoformat(),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _describe_validation(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "request"
        problems.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(problems) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to ``app``.

    ``VoiceCheckError`` subclasses are logged at INFO when the client is at
    fault (4xx) and at ERROR otherwise, always with their code.
    """

    @app.exception_handler(VoiceCheckError)
    async def voicecheck_error_handler(request: Request, exc: VoiceCheckError) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d %s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
            exc.detail,
        )
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        detail = _describe_validation(exc)
        logger.info("%s %s -> 422 VALIDATION_ERROR: %s", request.method, request.url.path, detail)
        return _envelope(422, detail, "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled %s on %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
