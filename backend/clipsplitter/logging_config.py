"""
Logging configuration for the application.

Supports per-module log levels via environment variables:
- LOG_LEVEL: Global log level (default: INFO)
- LOG_FORMAT: Log format - simple or structured (default: structured)
- LOG_LEVEL_<MODULE>: Per-module override (e.g., LOG_LEVEL_PIPELINE=DEBUG)
"""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clipsplitter.config import Settings


# Module name mapping: settings field suffix -> logger name
MODULE_LOGGERS = {
    "ai_client": "clipsplitter.services.ai_clients",
    "pipeline": "clipsplitter.services.pipeline",
    "planner": "clipsplitter.services.planner",
    "transcriber": "clipsplitter.services.transcriber",
    "summarizer": "clipsplitter.services.summarizer",
}


class StructuredFormatter(logging.Formatter):
    """
    Structured log formatter for easy parsing.

    Format: timestamp | level | logger | message
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record in structured format."""
        logger_name = record.name
        for prefix, short in (
            ("clipsplitter.services.", ""),
            ("clipsplitter.api.", "api."),
            ("clipsplitter.", ""),
        ):
            if logger_name.startswith(prefix):
                logger_name = short + logger_name[len(prefix):]
                break

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        message = (
            f"{timestamp} | "
            f"{record.levelname:8} | "
            f"{logger_name:20} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging(settings: "Settings") -> None:
    """
    Configure logging based on settings.

    Args:
        settings: Application settings with log configuration
    """
    root_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "structured":
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(root_level)
    root_logger.addHandler(handler)

    _configure_module_loggers(settings, root_level)

    # Quiet noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _configure_module_loggers(settings: "Settings", default_level: int) -> None:
    """Apply LOG_LEVEL_<MODULE> overrides."""
    for module_key, logger_name in MODULE_LOGGERS.items():
        level_str = getattr(settings, f"log_level_{module_key}", None)

        if level_str:
            level = getattr(logging, level_str.upper(), default_level)
            logging.getLogger(logger_name).setLevel(level)
