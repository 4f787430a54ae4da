"""
Exception hierarchy for the FlowChart AI backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class FlowchartAIError(Exception):
    """Base exception for all FlowChart AI errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(FlowchartAIError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ConfigurationError(FlowchartAIError):
    """Raised when a required setting (e.g. the model credential) is missing."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        details = {"setting": setting} if setting else {}
        super().__init__(message, details)


class ConversionError(FlowchartAIError):
    """Raised when diagram description text cannot be parsed into a diagram."""

    def __init__(
        self,
        reason: str,
        line: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize conversion error.

        Args:
            reason: Human-readable parse failure reason
            line: 1-based source line that failed, when known
            details: Additional context
        """
        details = details or {}
        if line is not None:
            details["line"] = line
        self.reason = reason
        self.line = line
        super().__init__(reason, details)


class ToolArgumentError(FlowchartAIError):
    """Raised when an accumulated tool-call argument string is not a valid payload."""

    def __init__(self, message: str, tool_call_id: str, tool_name: str | None = None) -> None:
        self.tool_call_id = tool_call_id
        self.tool_name = tool_name
        super().__init__(message, {"tool_call_id": tool_call_id, "tool_name": tool_name})


class InferenceStreamError(FlowchartAIError):
    """Raised when the inference connection drops, times out or returns garbage."""

    pass


class TranscriptError(FlowchartAIError):
    """Raised when a submitted transcript violates the resume contract."""

    def __init__(self, message: str, missing_tool_call_ids: list[str] | None = None) -> None:
        self.missing_tool_call_ids = missing_tool_call_ids or []
        super().__init__(message, {"missing_tool_call_ids": self.missing_tool_call_ids})


class QuotaExceededError(FlowchartAIError):
    """Raised when an admission decision denies a caller."""

    def __init__(self, decision: Any) -> None:
        self.decision = decision
        super().__init__(getattr(decision, "reason", None) or "Usage limit reached")
