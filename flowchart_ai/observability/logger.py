"""
Logger configuration.

Console logging with ISO timestamps and the request correlation ID injected
into every record.

Dependencies: logging (stdlib), flowchart_ai.observability.correlation
System role: Centralized logging configuration
"""

import logging
import sys

from flowchart_ai.observability.correlation import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "sqlalchemy.engine", "asyncio")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging.

    Safe to call more than once (app factory in tests); existing handlers are
    replaced rather than duplicated.

    Args:
        level: Root log level name
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
