"""
Listing Integrity Engine

Asset DNA scoring, fraud and anomaly detection, and the listing lifecycle.
"""

from core.integrity.similarity import edit_distance, relative_deviation, title_similarity
from core.integrity.comparables import (
    Comparable,
    ComparableCorpusReader,
    resolve_price,
    resolve_unit_area,
)
from core.integrity.asset_dna import (
    AssetVerificationEngine,
    ScoreCard,
    assign_identity,
    bucket_legal_risk,
    compute_scores,
)
from core.integrity.fraud import (
    DuplicateCheckResult,
    FraudDetector,
    PriceAnomalyResult,
    RateLimitResult,
)
from core.integrity.events import (
    EventType,
    InMemoryDispatcher,
    LifecycleEvent,
    NotificationDispatcher,
    NotificationKind,
    OwnerNotification,
    Severity,
)
from core.integrity.lifecycle import LifecycleAction, LifecycleController
from core.integrity.service import (
    CreateListingResult,
    ListingIntegrityService,
    build_service,
)

__all__ = [
    # Similarity
    "edit_distance",
    "relative_deviation",
    "title_similarity",
    # Comparables
    "Comparable",
    "ComparableCorpusReader",
    "resolve_price",
    "resolve_unit_area",
    # Asset DNA
    "AssetVerificationEngine",
    "ScoreCard",
    "assign_identity",
    "bucket_legal_risk",
    "compute_scores",
    # Fraud
    "DuplicateCheckResult",
    "FraudDetector",
    "PriceAnomalyResult",
    "RateLimitResult",
    # Events
    "EventType",
    "InMemoryDispatcher",
    "LifecycleEvent",
    "NotificationDispatcher",
    "NotificationKind",
    "OwnerNotification",
    "Severity",
    # Lifecycle
    "LifecycleAction",
    "LifecycleController",
    # Orchestration
    "CreateListingResult",
    "ListingIntegrityService",
    "build_service",
]
