import logging

from src.base.middleware.correlation_middleware import CorrelationFilter
from src.base.middleware.request_context import RequestContextFilter


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.colored_levelname = (
                f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
            )
        else:
            record.colored_levelname = levelname

        # Last segment of the logger name, e.g. "user_service"
        if record.name:
            filename = record.name.split(".")[-1]
            record.filename_only = filename if filename != "__main__" else "app"
        else:
            record.filename_only = "unknown"

        if not getattr(record, "correlation_id", None):
            record.correlation_id = "-"

        return super().format(record)


class LoggingConfig:
    """Configuration class for application logging setup."""

    FORMAT = (
        "%(asctime)s | %(colored_levelname)s | %(correlation_id)s | "
        "%(filename_only)s | %(message)s"
    )

    @staticmethod
    def setup_logging(log_level: int | str = logging.INFO) -> None:
        """
        Configure root logging with correlation ID and request context support.

        Args:
            log_level: The logging level, as a number or a level name (default: INFO)
        """
        if isinstance(log_level, str):
            log_level = logging.getLevelName(log_level.upper())
            if not isinstance(log_level, int):
                log_level = logging.INFO

        logger = logging.getLogger()
        logger.setLevel(log_level)

        # Only add handlers if none exist to avoid duplicates
        if not logger.hasHandlers():
            handler = logging.StreamHandler()
            handler.setFormatter(
                ColoredFormatter(LoggingConfig.FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
            handler.addFilter(CorrelationFilter())
            handler.addFilter(RequestContextFilter())
            logger.addHandler(handler)
