# core/errors.py
"""
Exception handlers that render every failure as ``{"ok": false, "error": ...}``.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import MoverServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for the service error taxonomy and the catch-all."""

    @app.exception_handler(MoverServiceError)
    async def handle_service_error(request: Request, exc: MoverServiceError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"⚠️ {request.method} {request.url.path} rejected: {exc.message}")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid {field}: {first.get('msg', 'invalid value')}" if field else "Invalid request"
        logger.info(f"⚠️ {request.method} {request.url.path} rejected: {message}")
        return error_response(422, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
        return error_response(500, "Server error")
