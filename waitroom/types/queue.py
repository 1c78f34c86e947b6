"""
Queue-related type definitions for internal use.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueueEntry:
    """A sorted set member and its ordering score."""

    member: str
    score: float


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of promoting one queue during a scheduler cycle."""

    queue: str
    requested: int
    admitted: int
