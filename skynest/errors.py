"""
Domain exceptions.

Every failure a handler reports to a client is one of these. ``main.py``
registers a handler that renders them as ``{"error": message, **extra}`` with
the class's status code, so services never need to know about HTTP.
"""

from __future__ import annotations

from typing import Any


class SkyNestError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationFailed(SkyNestError):
    """Malformed input or a violated business rule."""

    status_code = 400


class BookingConflict(ValidationFailed):
    """Requested dates overlap an active booking on the same room."""


class AuthenticationRequired(SkyNestError):
    status_code = 401


class PermissionDenied(SkyNestError):
    status_code = 403


class NotFound(SkyNestError):
    status_code = 404


class Conflict(SkyNestError):
    """A unique resource (email, employee id, review) already exists."""

    status_code = 409


class InternalServerError(SkyNestError):
    status_code = 500
