# backend/app/schemas/errors.py
"""
Pydantic schemas for error responses.

Every error leaves the API in one shape, produced by the global exception
handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error body."""

    error: str = Field(
        ...,
        description="Error type (e.g. 'PortfolioNotFoundError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context"
    )


class ValidationErrorDetail(BaseModel):
    """Body of 422 responses produced from request validation errors."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="One entry per invalid field"
    )
