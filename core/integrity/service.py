"""
Listing Integrity Service - Create/Update Orchestration

Runs the integrity checks in a fixed order around a new listing:

1. Rate limit (blocking, 429)
2. Duplicate detection (blocking, 409 with the nearby matches)
3. Price anomaly (advisory, returned as a warning)
4. Identity, DRAFT persist, verification record, persist again

Everything after creation is delegated to the lifecycle controller.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from core.errors import ConflictError, RateLimitExceededError
from core.integrity.asset_dna import AssetVerificationEngine
from core.integrity.comparables import ComparableCorpusReader
from core.integrity.events import InMemoryDispatcher, NotificationDispatcher
from core.integrity.fraud import FraudDetector
from core.integrity.lifecycle import LifecycleAction, LifecycleController
from core.listing.repository import (
    InMemoryPropertyRepository,
    InMemoryVerificationRepository,
    PropertyRepository,
    VerificationRepository,
)
from core.listing.schema import (
    Actor,
    ListingAttempt,
    Property,
    PropertyStatus,
    utc_now,
)
from utils.config import Config

logger = logging.getLogger(__name__)


@dataclass
class CreateListingResult:
    """A created property plus any advisory warnings."""

    property: Property
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property.to_dict(),
            "warnings": list(self.warnings),
        }


class ListingIntegrityService:
    """
    Entry point for listing writes and reads.

    Usage:
        service = build_service(Config.load())
        result = service.create_listing(ListingAttempt.from_dict(payload), actor)
    """

    def __init__(
        self,
        properties: PropertyRepository,
        records: VerificationRepository,
        dispatcher: Optional[NotificationDispatcher] = None,
        config: Optional[Config] = None,
        clock: Callable = utc_now,
    ):
        self.config = config or Config()
        self.properties = properties
        self.records = records
        self.dispatcher = dispatcher or InMemoryDispatcher()
        self._clock = clock

        cfg = self.config
        self.asset_engine = AssetVerificationEngine(
            records,
            max_attempts=cfg.upsert_max_attempts,
            clock=clock,
        )
        self.detector = FraudDetector(
            properties,
            comparables=ComparableCorpusReader(
                properties, sample_size=cfg.comparable_sample_size
            ),
            radius_meters=cfg.duplicate_radius_meters,
            similarity_threshold=cfg.duplicate_similarity_threshold,
            max_matches=cfg.duplicate_max_matches,
            min_comparables=cfg.min_comparables,
            deviation_threshold=cfg.price_deviation_threshold,
            max_listings_per_day=cfg.listing_rate_limit,
            clock=clock,
        )
        self.lifecycle = LifecycleController(
            properties,
            records,
            self.asset_engine,
            self.dispatcher,
            min_submit_images=cfg.min_submit_images,
            auto_approve_on_submit=cfg.auto_approve_on_submit,
            clock=clock,
        )

    # =========================================================================
    # Create
    # =========================================================================

    def create_listing(self, attempt: ListingAttempt, actor: Actor) -> CreateListingResult:
        """
        Check and persist a new listing as DRAFT.

        Raises:
            RateLimitExceededError: The actor hit the daily listing cap
            ConflictError: Another user already lists the same asset nearby
            DuplicateKeyError: Generated identifiers collided in storage
        """
        rate = self.detector.check_rate_limit(
            actor.user_id, limit=self.config.listing_rate_limit
        )
        if not rate.allowed:
            logger.info("Rate limit hit for %s (limit %d)", actor.user_id, rate.limit)
            raise RateLimitExceededError(limit=rate.limit, remaining=rate.remaining)

        duplicate = self.detector.detect_duplicate(attempt, exclude_owner=actor.user_id)
        if duplicate.is_duplicate:
            raise ConflictError(
                "A similar property already exists at this location",
                matches=duplicate.matches,
            )

        warnings = []
        anomaly = self.detector.detect_price_anomaly(attempt)
        if anomaly.is_anomaly:
            logger.warning(
                "Price anomaly for '%s' by %s: %s (deviation %.2f)",
                attempt.title, actor.user_id, anomaly.reason, anomaly.deviation,
            )
            warnings.append(anomaly.reason)

        asset_id = self.asset_engine.assign_identity()
        prop = Property.from_attempt(
            attempt,
            asset_id=asset_id,
            listed_by=actor.user_id,
            created_at=self._clock(),
        )
        prop = self.properties.add(prop)

        self.asset_engine.refresh(prop)
        prop = self.properties.save(prop)

        logger.info(
            "Created property %s (asset %s) for %s",
            prop.property_id, prop.asset_id, actor.user_id,
            extra={
                "property_id": prop.property_id,
                "asset_id": prop.asset_id,
                "user_id": actor.user_id,
            },
        )
        return CreateListingResult(property=prop, warnings=warnings)

    # =========================================================================
    # Lifecycle delegation
    # =========================================================================

    def update_listing(self, property_id: str, changes: dict[str, Any], actor: Actor) -> Property:
        return self.lifecycle.update(property_id, changes, actor)

    def delete_listing(self, property_id: str, actor: Actor) -> None:
        self.lifecycle.delete(property_id, actor)

    def get_listing(self, property_id: str) -> Property:
        return self.lifecycle.get(property_id)

    def view_listing(self, property_id: str) -> Property:
        """Fetch a listing for its detail page, counting the view."""
        return self.lifecycle.record_view(property_id)

    def get_verification(self, property_id: str):
        """The full verification record, or None if never computed."""
        self.lifecycle.get(property_id)
        return self.records.get_by_property(property_id)

    def list_listings(
        self,
        status: Optional[PropertyStatus] = None,
        listed_by: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        **filters: Any,
    ) -> tuple[list[Property], int]:
        return self.lifecycle.list_properties(
            status=status, listed_by=listed_by, page=page, limit=limit, **filters
        )

    def transition(
        self,
        property_id: str,
        action: Union[LifecycleAction, str],
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Property:
        """Load a property and apply a named lifecycle action."""
        prop = self.lifecycle.get(property_id)
        return self.lifecycle.transition(prop, action, actor, reason=reason)


def build_service(
    config: Optional[Config] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> ListingIntegrityService:
    """
    Wire repositories and engine components from configuration.

    With persistence on, both collections are kept as JSON under data_dir.
    """
    config = config or Config.load()

    property_path = None
    record_path = None
    if config.persist:
        property_path = os.path.join(config.data_dir, "properties.json")
        record_path = os.path.join(config.data_dir, "verification_records.json")

    return ListingIntegrityService(
        properties=InMemoryPropertyRepository(persist_path=property_path),
        records=InMemoryVerificationRepository(persist_path=record_path),
        dispatcher=dispatcher,
        config=config,
    )
