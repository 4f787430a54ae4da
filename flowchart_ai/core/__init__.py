"""
Core business logic module.

Contains the domain logic (diagram synthesis, canvas analysis, usage admission,
conversation orchestration) and the exception hierarchy.
"""

from flowchart_ai.core.exceptions import (
    ConfigurationError,
    ConversionError,
    FlowchartAIError,
    InferenceStreamError,
    QuotaExceededError,
    ToolArgumentError,
    TranscriptError,
    ValidationError,
)

__all__ = [
    "FlowchartAIError",
    "ValidationError",
    "ConfigurationError",
    "ConversionError",
    "ToolArgumentError",
    "InferenceStreamError",
    "TranscriptError",
    "QuotaExceededError",
]
