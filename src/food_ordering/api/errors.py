"""Error rendering for the HTTP surface.

Every error response has the shape ``{"success": false, "message": ...,
"errors": {...}}``. Protean's own handlers are registered first so any
framework exception not mapped here still gets a sensible status.
"""

import os
import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from protean.exceptions import InvalidDataError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from food_ordering.exceptions import Forbidden, InfrastructureError, InvalidStateError

logger = structlog.get_logger(__name__)

STATUS_CODES = {
    ValidationError: 400,
    ObjectNotFoundError: 404,
    Forbidden: 403,
    InvalidStateError: 409,
    InvalidDataError: 400,
    InfrastructureError: 503,
}


def _messages(exc) -> dict:
    messages = getattr(exc, "messages", None)
    return messages if isinstance(messages, dict) else {"error": [str(exc)]}


def error_body(message: str, errors: dict | None = None) -> dict:
    return {"success": False, "message": message, "errors": errors or {}}


def _summary(messages: dict) -> str:
    return "; ".join(str(msg) for msgs in messages.values() for msg in (msgs if isinstance(msgs, list) else [msgs]))


async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(code for cls, code in STATUS_CODES.items() if isinstance(exc, cls))
    messages = _messages(exc)
    if status_code >= 500:
        logger.error("Infrastructure failure", path=request.url.path, error=_summary(messages))
    return JSONResponse(status_code=status_code, content=error_body(_summary(messages), messages))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path"))
        errors.setdefault(field or "request", []).append(error["msg"])
    return JSONResponse(status_code=400, content=error_body("Validation error", errors))


async def handle_http_error(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    body = error_body(str(exc) or "Internal server error")
    if os.getenv("PROTEAN_ENV", "development") == "development":
        body["stack"] = traceback.format_exception(exc)
    return JSONResponse(status_code=500, content=body)


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_class in STATUS_CODES:
        app.add_exception_handler(exc_class, handle_domain_error)
    app.add_exception_handler(HTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
