"""
Error taxonomy shared by the storage backends, the repository and
the HTTP layer.

Every error carries the HTTP status it maps to and a human-readable
message.  ``register_exception_handlers`` installs FastAPI handlers
that render these (and FastAPI's own ``HTTPException`` and request
validation errors) as JSON ``{"message": ..., "error": ...}``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for failures surfaced by the record store."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, error: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error


class NotFoundError(StoreError):
    """A record, collection or question does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(StoreError):
    """A conditional write was rejected because the document changed."""

    status_code = status.HTTP_409_CONFLICT


class RecordValidationError(StoreError):
    """Caller-supplied fields are missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamUnavailableError(StoreError):
    """The remote store could not be reached or answered unexpectedly.

    Distinct from :class:`NotFoundError`: the current state of the
    document is unknown, so callers must not treat it as empty.
    """

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, error: Optional[Any] = None, timed_out: bool = False) -> None:
        super().__init__(message, error=error)
        self.timed_out = timed_out
        if timed_out:
            self.status_code = status.HTTP_504_GATEWAY_TIMEOUT


def error_body(message: str, error: Optional[Any] = None) -> dict:
    body: dict = {"message": message}
    if error is not None:
        body["error"] = error
    return body


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.error))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid payload", errors),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error handlers to ``app``."""
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
