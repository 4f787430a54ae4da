"""
Application services.

Exports: CanvasService, TurnService, UsageService, resolve_identity
"""

from flowchart_ai.application.services.canvas_service import CanvasService
from flowchart_ai.application.services.identity_service import resolve_identity
from flowchart_ai.application.services.turn_service import TurnService
from flowchart_ai.application.services.usage_service import UsageService

__all__ = [
    "CanvasService",
    "TurnService",
    "UsageService",
    "resolve_identity",
]
