"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_canvas_service,
    get_identity,
    get_service_cache,
    get_settings_dependency,
    get_turn_service,
    get_usage_service,
)

__all__ = [
    "get_canvas_service",
    "get_identity",
    "get_service_cache",
    "get_settings_dependency",
    "get_turn_service",
    "get_usage_service",
]
