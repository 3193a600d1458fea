"""Error taxonomy for the caption API and its JSON rendering."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

LOGGER = logging.getLogger("livecaption.errors")


class CaptionError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500


class InputError(CaptionError):
    """Missing or malformed request fields. Never retried."""

    status_code = 400


class NotFound(CaptionError):
    """The referenced event does not exist."""

    status_code = 404


class CapabilityError(CaptionError):
    """The external transcription/translation capability failed."""

    status_code = 502


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def install_error_handlers(app: FastAPI) -> FastAPI:
    @app.exception_handler(CaptionError)
    async def caption_error_handler(request: Request, exc: CaptionError):  # type: ignore
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _failure(exc.status_code, str(exc) or exc.__class__.__name__)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
        fields = sorted({".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()})
        message = "Missing or invalid fields: " + ", ".join(field for field in fields if field)
        return _failure(400, message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):  # type: ignore
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _failure(500, str(exc) or "Unknown error")

    return app
