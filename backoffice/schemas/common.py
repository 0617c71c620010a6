"""
Common / shared Pydantic schemas used across multiple endpoints.

Defines the error envelope models (so OpenAPI documents the error contract,
not only the happy path) and the :data:`Money` annotated type every amount
field uses.
"""

from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, Field, PlainSerializer

# Decimal in Python, JSON number on the wire.  Pydantic v2 serialises Decimal
# as a string by default, which breaks clients that expect numeric amounts.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ErrorResponse(BaseModel):
    """
    Standard error envelope returned by all non-validation error handlers.

    Every error from the API follows this shape, making it predictable for
    client-side error handling.
    """

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        ..., description="Human-readable error description", examples=["Fund not found"]
    )
    details: Optional[Any] = Field(
        default=None,
        description="Structured context, e.g. the offending field and constraint",
    )


class ValidationErrorDetail(BaseModel):
    """Single field-level validation failure."""

    field: str = Field(
        ...,
        description="Arrow-separated path to the invalid field",
        examples=["body -> amount"],
    )
    message: str = Field(
        ...,
        description="Explanation of the validation failure",
        examples=["Input should be greater than 0"],
    )


class ValidationErrorResponse(BaseModel):
    """
    Response body for 422 Unprocessable Entity (request validation failure).

    Includes a ``details`` array so clients can map errors to individual
    form fields.
    """

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        default="Validation failed",
        description="Summary message",
    )
    details: List[ValidationErrorDetail] = Field(..., description="Per-field validation failures")
