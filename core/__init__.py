"""
Listing Integrity Engine - Core Business Logic

This package provides:
1. Listing data model and storage (core.listing)
2. Asset DNA: identity and verification scoring
3. Fraud & anomaly detection: duplicates, price outliers, rate limit
4. Lifecycle state machine with owner notifications and public events
5. Create/update orchestration (ListingIntegrityService)
"""

from .errors import (
    AuthorizationError,
    ConflictError,
    DuplicateKeyError,
    InvalidInputError,
    InvalidTransitionError,
    ListingIntegrityError,
    NotFoundError,
    NotificationError,
    RateLimitExceededError,
    TransientWriteError,
)
from .listing import (
    Actor,
    ListingAttempt,
    Property,
    PropertyCategory,
    PropertyStatus,
    TransactionType,
    VerificationRecord,
)
from .integrity import (
    CreateListingResult,
    ListingIntegrityService,
    build_service,
)

__all__ = [
    # Errors
    "AuthorizationError",
    "ConflictError",
    "DuplicateKeyError",
    "InvalidInputError",
    "InvalidTransitionError",
    "ListingIntegrityError",
    "NotFoundError",
    "NotificationError",
    "RateLimitExceededError",
    "TransientWriteError",
    # Model
    "Actor",
    "ListingAttempt",
    "Property",
    "PropertyCategory",
    "PropertyStatus",
    "TransactionType",
    "VerificationRecord",
    # Service
    "CreateListingResult",
    "ListingIntegrityService",
    "build_service",
]
