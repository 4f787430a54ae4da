"""API routers."""

from .canvas import router as canvas_router
from .chat import router as chat_router
from .health import router as health_router
from .usage import router as usage_router

__all__ = [
    "canvas_router",
    "chat_router",
    "health_router",
    "usage_router",
]
