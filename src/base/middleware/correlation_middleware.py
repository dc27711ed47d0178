import logging
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.base.middleware.request_context import reset_request_context

# Context variable to store correlation ID
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

logger = logging.getLogger(__name__)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID to each request for better log tracing."""

    async def dispatch(self, request: Request, call_next):
        # Get correlation ID from header or generate new one
        correlation_id_value = request.headers.get(
            "x-correlation-id", str(uuid.uuid4())
        )

        correlation_id.set(correlation_id_value)
        reset_request_context()

        logger.debug("%s %s", request.method, request.url.path)

        response: Response = await call_next(request)

        response.headers["x-correlation-id"] = correlation_id_value

        return response


class CorrelationFilter(logging.Filter):
    """Logging filter to add correlation ID to log records."""

    def filter(self, record):
        record.correlation_id = correlation_id.get("")
        return True
