"""Shared enums for the URL shortener application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "FailureKind"]


class HealthStatus(StrEnum):
    """Health check status values."""

    OK = "OK"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    ERROR = "error"
    NOT_FOUND = "not_found"


class FailureKind(StrEnum):
    """Caller-facing failure categories produced by the service layer."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _FAILURE_STATUS_CODES[self]


_FAILURE_STATUS_CODES = {
    FailureKind.INVALID_INPUT: 400,
    FailureKind.NOT_FOUND: 404,
    FailureKind.UNAVAILABLE: 503,
    FailureKind.INTERNAL: 500,
}
