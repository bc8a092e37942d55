"""
Listing Integrity Errors

Every failure the integrity engine reports to its callers derives from
ListingIntegrityError. Each class carries the HTTP status the web layer
answers with.

Price anomalies and "not enough comparables" are not errors:
those resolve to a negative result plus a warning string.
"""

from __future__ import annotations

from typing import Any, Optional


class ListingIntegrityError(Exception):
    """Base exception for all listing integrity errors."""

    status_code: int = 500
    error_code: str = "INTEGRITY_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {"error": self.error_code, "message": str(self)}


class InvalidInputError(ListingIntegrityError, ValueError):
    """Raised for a missing identifier or malformed input such as bad coordinates."""

    status_code = 400
    error_code = "INVALID_INPUT"


class InvalidTransitionError(ListingIntegrityError):
    """Raised when a lifecycle action is not allowed from the current status."""

    status_code = 400
    error_code = "INVALID_TRANSITION"

    def __init__(self, message: str, current_status: Optional[str] = None):
        self.current_status = current_status
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current_status
        return data


class AuthorizationError(ListingIntegrityError):
    """Raised when the actor is not the owner or not an admin for the action."""

    status_code = 403
    error_code = "NOT_AUTHORIZED"


class NotFoundError(ListingIntegrityError, LookupError):
    """Raised when a property or verification record does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(ListingIntegrityError):
    """Raised when a submission duplicates an existing listing."""

    status_code = 409
    error_code = "DUPLICATE_LISTING"

    def __init__(self, message: str, matches: Optional[list[dict[str, Any]]] = None):
        self.matches = matches or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["similar_properties"] = self.matches
        return data


class DuplicateKeyError(ListingIntegrityError):
    """Raised by a repository when a unique key would be violated."""

    status_code = 409
    error_code = "DUPLICATE_KEY"

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value
        super().__init__(f"Duplicate value for unique key {key}: {value}")


class RateLimitExceededError(ListingIntegrityError):
    """Raised when a user has used up their daily listing quota."""

    status_code = 429
    error_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, limit: int, remaining: int = 0):
        self.limit = limit
        self.remaining = remaining
        super().__init__(
            f"Listing limit of {limit} per 24 hours reached ({remaining} remaining)"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["remaining"] = self.remaining
        return data


class TransientWriteError(ListingIntegrityError):
    """Raised by storage for a write conflict that is safe to retry."""

    status_code = 503
    error_code = "TRANSIENT_WRITE_CONFLICT"


class NotificationError(ListingIntegrityError):
    """Raised by a notification dispatcher when delivery fails."""

    error_code = "NOTIFICATION_FAILED"
