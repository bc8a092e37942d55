"""
Listing Data Model and Storage

Properties, their category variants, the derived verification record,
and the repositories both are stored in.
"""

from core.listing.schema import (
    ACTIVE_STATUSES,
    OWNER_STATUSES,
    PUBLIC_STATUSES,
    TERMINAL_STATUSES,
    Actor,
    AreaUnit,
    AssetDNASummary,
    CategoryDetails,
    CommercialDetails,
    GeoPoint,
    LandDetails,
    Legal,
    LegalRisk,
    ListingAttempt,
    LitigationStatus,
    Location,
    Media,
    Pricing,
    Property,
    PropertyCategory,
    PropertyStatus,
    ResidentialDetails,
    TransactionType,
    UserRole,
    generate_property_id,
)
from core.listing.verification import (
    CompositeScores,
    GeoSource,
    GeoVerification,
    LegalStatus,
    VerificationRecord,
)
from core.listing.repository import (
    InMemoryPropertyRepository,
    InMemoryVerificationRepository,
    PropertyQuery,
    PropertyRepository,
    VerificationRepository,
)

__all__ = [
    # Schema
    "ACTIVE_STATUSES",
    "OWNER_STATUSES",
    "PUBLIC_STATUSES",
    "TERMINAL_STATUSES",
    "Actor",
    "AreaUnit",
    "AssetDNASummary",
    "CategoryDetails",
    "CommercialDetails",
    "GeoPoint",
    "LandDetails",
    "Legal",
    "LegalRisk",
    "ListingAttempt",
    "LitigationStatus",
    "Location",
    "Media",
    "Pricing",
    "Property",
    "PropertyCategory",
    "PropertyStatus",
    "ResidentialDetails",
    "TransactionType",
    "UserRole",
    "generate_property_id",
    # Verification record
    "CompositeScores",
    "GeoSource",
    "GeoVerification",
    "LegalStatus",
    "VerificationRecord",
    # Repositories
    "InMemoryPropertyRepository",
    "InMemoryVerificationRepository",
    "PropertyQuery",
    "PropertyRepository",
    "VerificationRepository",
]
