"""
Common response models and utilities.

Camel-case wire base model and generic error schema.

Dependencies: pydantic
System role: Common API response structures
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either casing on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(description="Error message")
    message: str | None = Field(default=None, description="Human-readable explanation")
    details: dict | None = Field(default=None, description="Additional error context")
