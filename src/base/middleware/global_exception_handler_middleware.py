import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred"


class GlobalExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that turns unhandled exceptions into an opaque 500 response.

    The exception is logged in full; the client only sees a generic message.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as ex:
            return self._handle_exception(request, ex)

    def _handle_exception(self, request: Request, ex: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception occurred",
            exc_info=ex,
            extra={"path": str(request.url.path), "method": request.method},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "InternalServerError", "message": GENERIC_MESSAGE},
        )
