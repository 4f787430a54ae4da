"""
Observability module.

Structured logging, correlation ID tracking and request middleware.
"""

from flowchart_ai.observability.correlation import (
    CorrelationIdFilter,
    get_correlation_id,
    set_correlation_id,
)
from flowchart_ai.observability.logger import configure_logging, get_logger

__all__ = [
    "CorrelationIdFilter",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
]
