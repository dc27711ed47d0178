import logging
from contextvars import ContextVar

# Request-scoped properties attached to every log record of the request.
# Written by the authentication dependency, cleared by CorrelationMiddleware.
request_context: ContextVar[dict[str, str] | None] = ContextVar(
    "request_context", default=None
)

USER_ID = "user_id"


def set_request_context(key: str, value: str) -> None:
    """Set a key in the request context. Creates a new dict if needed."""
    ctx = request_context.get(None)
    if ctx is None:
        ctx = {}
        request_context.set(ctx)
    ctx[key] = value


def reset_request_context() -> None:
    """Start a fresh context. Called once at the start of each request."""
    request_context.set(None)


class RequestContextFilter(logging.Filter):
    """Logging filter that copies request context properties onto log records."""

    def filter(self, record):
        ctx = request_context.get(None)
        record.user_id = ctx.get(USER_ID, "-") if ctx else "-"
        if ctx:
            for key, value in ctx.items():
                setattr(record, key, value)
        return True
