"""
API request and response type definitions.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterUserResponse(BaseModel):
    """Response after joining a wait queue."""

    rank: int = Field(..., description="1-based position in the wait queue")


class AllowUserResponse(BaseModel):
    """Response after admitting a batch of waiting users."""

    requested_count: int
    allowed_count: int


class AllowedUserResponse(BaseModel):
    """Admission status for a user."""

    allowed: bool


class RankNumberResponse(BaseModel):
    """Current wait queue position, or -1 when not waiting."""

    rank: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    store: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None
