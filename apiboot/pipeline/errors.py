"""Global error-translation stage.

Wraps every handler call and turns whatever escapes it into an
`ErrorResponse`:

- RequestValidationFailed -> 400 with per-field violations
- HTTPException           -> its own status code and detail
- anything else           -> 500, logged with traceback, nothing leaked

`install_exception_handlers` renders framework-level errors (unknown path,
wrong method) in the same shape.
"""

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, List, Mapping, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..core.models_io import ErrorResponse, FieldViolation
from .routes import Call, RequestContext, Route
from .validation import RequestValidationFailed

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def error_response(
    status_code: int,
    message: str,
    path: str,
    violations: Optional[List[FieldViolation]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Render the one error shape every failure is reported in."""
    body = ErrorResponse(
        status_code=status_code,
        error=_reason(status_code),
        message=message,
        path=path,
        timestamp=datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds"),
        violations=violations,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=dict(headers) if headers else None,
    )


def _detail_message(detail: Any, status_code: int) -> str:
    if isinstance(detail, str) and detail:
        return detail
    return _reason(status_code)


class ErrorTranslationStage:
    """Catch-all around each handler call; stateless between requests."""

    name = "error_translation"

    def wrap(self, route: Route, call_next: Call) -> Call:
        async def translate(ctx: RequestContext) -> Any:
            try:
                return await call_next(ctx)
            except RequestValidationFailed as exc:
                return error_response(400, exc.message, ctx.path, exc.violations)
            except HTTPException as exc:
                return error_response(
                    exc.status_code,
                    _detail_message(exc.detail, exc.status_code),
                    ctx.path,
                    headers=exc.headers,
                )
            except Exception:
                logger.exception(
                    "Unhandled error in %s %s (%s)",
                    ctx.request.method,
                    ctx.path,
                    route.endpoint_name,
                )
                return error_response(500, INTERNAL_ERROR_MESSAGE, ctx.path)

        return translate


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(
        exc.status_code,
        _detail_message(exc.detail, exc.status_code),
        request.url.path,
        headers=exc.headers,
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    violations = [
        FieldViolation(
            field=".".join(str(part) for part in err.get("loc", ())),
            message=str(err.get("msg", "")),
            type=str(err.get("type", "value_error")),
        )
        for err in exc.errors()
    ]
    return error_response(400, "Request validation failed", request.url.path, violations)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error outside the handler chain on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE, request.url.path)


def install_exception_handlers(app: FastAPI) -> None:
    """Render errors raised outside mounted handlers as `ErrorResponse`."""
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    # Last resort for middleware failures; Starlette re-raises after responding
    app.add_exception_handler(Exception, _unhandled_exception_handler)
