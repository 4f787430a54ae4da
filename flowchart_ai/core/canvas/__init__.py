"""
Canvas analyzer.

Exports: analyze, describe, build_inspection_result, build_inspection_message
"""

from flowchart_ai.core.canvas.analyzer import (
    EMPTY_CANVAS_DESCRIPTION,
    analyze,
    build_inspection_message,
    build_inspection_result,
    describe,
)

__all__ = [
    "EMPTY_CANVAS_DESCRIPTION",
    "analyze",
    "describe",
    "build_inspection_result",
    "build_inspection_message",
]
