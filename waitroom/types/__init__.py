"""
Type definitions for the waiting room.
Contains input/output type definitions, grouped by module.
"""

from waitroom.types.api import (
    AllowedUserResponse,
    AllowUserResponse,
    ErrorResponse,
    HealthResponse,
    RankNumberResponse,
    RegisterUserResponse,
)
from waitroom.types.queue import AdmissionResult, QueueEntry

__all__ = [
    # API types
    "RegisterUserResponse",
    "AllowUserResponse",
    "AllowedUserResponse",
    "RankNumberResponse",
    "HealthResponse",
    "ErrorResponse",
    # Queue types
    "QueueEntry",
    "AdmissionResult",
]
