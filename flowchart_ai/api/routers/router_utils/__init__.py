"""
Router utility functions.

Contains helper functions extracted from router endpoints to keep them clean.
"""

from flowchart_ai.api.routers.router_utils.responses import (
    error_response,
    quota_exceeded_response,
)

__all__ = [
    "error_response",
    "quota_exceeded_response",
]
