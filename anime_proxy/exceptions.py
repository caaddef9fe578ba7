"""Error taxonomy for the proxy and the handlers that render it as `{error}` JSON."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from anime_proxy.config import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_ERROR,
    HTTP_NOT_FOUND,
    INTERNAL_ERROR_MESSAGE,
)

logger = logging.getLogger(__name__)


class ProxyError(Exception):
    """Base exception carrying the HTTP status it maps to."""
    status_code = HTTP_INTERNAL_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ProxyError):
    """Empty or malformed query input."""
    status_code = HTTP_BAD_REQUEST


class NotFoundError(ProxyError):
    """Upstream yielded no match on an explicit-fetch path."""
    status_code = HTTP_NOT_FOUND


class UpstreamError(ProxyError):
    """AniList answered with an error or an unusable payload."""


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as `{"error": ...}` with the matching status."""

    @app.exception_handler(ProxyError)
    async def handle_proxy_error(request: Request, exc: ProxyError):
        if exc.status_code >= HTTP_INTERNAL_ERROR:
            # Upstream details stay in the server log
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            return JSONResponse(status_code=exc.status_code, content={"error": INTERNAL_ERROR_MESSAGE})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
            message = f"Invalid parameter '{field}': {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request parameters"
        return JSONResponse(status_code=HTTP_BAD_REQUEST, content={"error": message})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=HTTP_INTERNAL_ERROR, content={"error": INTERNAL_ERROR_MESSAGE})
