"""
inala/core/errors.py

Purpose: Error envelope

- Every failure leaves the API as ErrorResponse{error, code, details}
- Domain errors keep their own status and code
- Log lines carry the tenant from the request path when there is one
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from inala.core.exceptions import InalaError
from inala.core.logging import get_logger
from inala.schemas.response import ErrorResponse
from inala.core.config import settings

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body.model_dump()))


def _request_context(request: Request) -> dict:
    context = {"method": request.method, "path": request.url.path}
    tenant_id = request.path_params.get("tenant_id")
    if tenant_id:
        context["tenant_id"] = tenant_id
    user_id = request.headers.get("X-User-Id")
    if user_id:
        context["user_id"] = user_id
    return context


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(InalaError)
    async def inala_exception_handler(request: Request, exc: InalaError):
        level = logger.error if exc.status_code >= 500 else logger.info
        level(f"{exc.code}: {exc.message}", extra=_request_context(request))
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unknown routes, wrong methods and auth dependencies
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(422, "Input validation failed", "VALIDATION_ERROR", exc.errors())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", extra=_request_context(request), exc_info=True)
        message = INTERNAL_ERROR_MESSAGE if settings.is_production else str(exc)
        return error_response(500, message, "INTERNAL_ERROR")
