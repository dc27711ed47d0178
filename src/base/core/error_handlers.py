"""
Exception handlers translating every anticipated failure into a stable JSON shape.

Unanticipated exceptions are left to GlobalExceptionHandlerMiddleware.
"""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.base.core.exceptions import AppError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

# Location prefixes FastAPI puts in front of field paths
_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def format_issues(errors) -> list[dict[str, str]]:
    """Reduce validation errors to {path, message, code}. Input values are never echoed."""
    issues = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATIONS:
            loc = loc[1:]
        issues.append(
            {
                "path": ".".join(str(part) for part in loc),
                "message": error.get("msg", ""),
                "code": error.get("type", ""),
            }
        )
    return issues


async def request_validation_handler(request: Request, exc: RequestValidationError):
    issues = format_issues(exc.errors())
    logger.info(
        "Validation failed for %s %s: %s",
        request.method,
        request.url.path,
        [issue["path"] for issue in issues],
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "ValidationError", "issues": issues},
    )


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Unhandled integrity error reached the boundary", exc_info=exc)
    return await app_error_handler(request, ConflictError())


async def stale_data_handler(request: Request, exc: StaleDataError):
    return await app_error_handler(request, NotFoundError())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    try:
        error = HTTPStatus(exc.status_code).phrase.replace(" ", "").replace("-", "")
    except ValueError:
        error = "HTTPError"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StaleDataError, stale_data_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
