"""
Fraud & Anomaly Detector

Three checks run against a listing attempt before it is committed:

1. Duplicate detection (blocking): a listing by another user within 50 m
   whose title is at least 80% similar.
2. Price anomaly (advisory): price per unit area deviates more than 50%
   from the aggregate of recent approved comparables.
3. Rate limit (blocking): at most N listings per user per trailing 24h.

Every check degrades to "no signal" when its inputs are missing.

The rate limit is a plain count followed by an independent insert by the
caller. Two concurrent submissions can both pass; the cap is soft.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Final, Optional, Union

from core.integrity.comparables import (
    ComparableCorpusReader,
    resolve_price,
    resolve_unit_area,
)
from core.integrity.similarity import relative_deviation, title_similarity
from core.listing.repository import PropertyRepository
from core.listing.schema import (
    ACTIVE_STATUSES,
    ListingAttempt,
    Property,
    utc_now,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Defaults
# =============================================================================

DUPLICATE_RADIUS_METERS: Final[float] = 50.0
DUPLICATE_SIMILARITY_THRESHOLD: Final[float] = 0.8
DUPLICATE_MAX_MATCHES: Final[int] = 5

MIN_COMPARABLES: Final[int] = 3
PRICE_DEVIATION_THRESHOLD: Final[float] = 0.5
# Above this deviation the reason reads "more than 2x"
EXTREME_DEVIATION: Final[float] = 1.0

MAX_LISTINGS_PER_DAY: Final[int] = 10
RATE_LIMIT_WINDOW: Final[timedelta] = timedelta(hours=24)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Outcome of duplicate detection."""

    is_duplicate: bool
    matches: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"is_duplicate": self.is_duplicate, "matches": self.matches}


@dataclass(frozen=True)
class PriceAnomalyResult:
    """Outcome of price anomaly detection. Advisory only."""

    is_anomaly: bool
    reason: Optional[str] = None
    deviation: Optional[float] = None
    comparable_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_anomaly": self.is_anomaly,
            "reason": self.reason,
            "deviation": self.deviation,
            "comparable_count": self.comparable_count,
        }


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of the per-user listing rate limit."""

    allowed: bool
    remaining: int
    limit: int = MAX_LISTINGS_PER_DAY

    def to_dict(self) -> dict[str, Any]:
        return {"allowed": self.allowed, "remaining": self.remaining}


def _match_summary(prop: Property) -> dict[str, Any]:
    return {
        "id": prop.property_id,
        "title": prop.title,
        "location": prop.location.to_dict(),
    }


# =============================================================================
# Detector
# =============================================================================


class FraudDetector:
    """
    Duplicate, price-anomaly and rate-limit checks.

    Repositories are injected; nothing is looked up globally.
    """

    def __init__(
        self,
        properties: PropertyRepository,
        comparables: Optional[ComparableCorpusReader] = None,
        radius_meters: float = DUPLICATE_RADIUS_METERS,
        similarity_threshold: float = DUPLICATE_SIMILARITY_THRESHOLD,
        max_matches: int = DUPLICATE_MAX_MATCHES,
        min_comparables: int = MIN_COMPARABLES,
        deviation_threshold: float = PRICE_DEVIATION_THRESHOLD,
        max_listings_per_day: int = MAX_LISTINGS_PER_DAY,
        clock: Callable = utc_now,
    ):
        self._properties = properties
        self._comparables = comparables or ComparableCorpusReader(properties)
        self._radius_meters = radius_meters
        self._similarity_threshold = similarity_threshold
        self._max_matches = max_matches
        self._min_comparables = min_comparables
        self._deviation_threshold = deviation_threshold
        self._max_listings_per_day = max_listings_per_day
        self._clock = clock

    # =========================================================================
    # Duplicate detection
    # =========================================================================

    def detect_duplicate(
        self,
        candidate: Union[ListingAttempt, Property],
        exclude_owner: Optional[str],
    ) -> DuplicateCheckResult:
        """
        Look for the same asset listed by someone else.

        Skipped (not duplicate) when the candidate has no coordinates.
        """
        if candidate.location is None or not candidate.location.has_point:
            return DuplicateCheckResult(is_duplicate=False)
        point = candidate.location.point

        # A stored listing must not match itself
        nearby = self._properties.find_near(
            point=point,
            max_distance_meters=self._radius_meters,
            statuses=ACTIVE_STATUSES,
            exclude_owner=exclude_owner,
            exclude_property_id=getattr(candidate, "property_id", None),
            limit=self._max_matches,
        )

        is_duplicate = bool(nearby) and any(
            title_similarity(candidate.title, prop.title) >= self._similarity_threshold
            for prop in nearby
        )

        if is_duplicate:
            logger.info(
                "Duplicate listing suspected near (%s, %s): %d nearby",
                point.latitude, point.longitude, len(nearby),
            )

        return DuplicateCheckResult(
            is_duplicate=is_duplicate,
            matches=[_match_summary(p) for p in nearby],
        )

    # =========================================================================
    # Price anomaly
    # =========================================================================

    def detect_price_anomaly(
        self,
        candidate: Union[ListingAttempt, Property],
    ) -> PriceAnomalyResult:
        """
        Compare the candidate's price per unit area with local comparables.

        Uses the aggregate rate (sum of prices / sum of areas), not a mean
        of per-listing rates. Fewer than min_comparables usable comparables
        is no signal, however extreme the candidate price.
        """
        city = candidate.location.city if candidate.location else ""
        if not city or candidate.pricing is None:
            return PriceAnomalyResult(is_anomaly=False)

        comparables = self._comparables.comparables(city, candidate.category)
        if len(comparables) < self._min_comparables:
            return PriceAnomalyResult(is_anomaly=False, comparable_count=len(comparables))

        total_price = sum(c.price for c in comparables)
        total_area = sum(c.unit_area for c in comparables)
        average_rate = total_price / total_area
        if not math.isfinite(average_rate) or average_rate <= 0:
            return PriceAnomalyResult(is_anomaly=False, comparable_count=len(comparables))

        price = resolve_price(candidate)
        area = resolve_unit_area(candidate)
        if price <= 0 or area <= 0:
            return PriceAnomalyResult(is_anomaly=False, comparable_count=len(comparables))

        deviation = relative_deviation(price / area, average_rate)

        if deviation > self._deviation_threshold:
            if deviation > EXTREME_DEVIATION:
                reason = "Price is more than 2x the local average"
            else:
                reason = "Price is significantly different from the local average"
            return PriceAnomalyResult(
                is_anomaly=True,
                reason=reason,
                deviation=deviation,
                comparable_count=len(comparables),
            )

        return PriceAnomalyResult(
            is_anomaly=False,
            deviation=deviation,
            comparable_count=len(comparables),
        )

    # =========================================================================
    # Rate limit
    # =========================================================================

    def check_rate_limit(self, user_id: str, limit: Optional[int] = None) -> RateLimitResult:
        """
        Count the user's listings created in the trailing 24 hours.

        Args:
            user_id: Lister to check
            limit: Cap to apply; defaults to the configured cap
        """
        cap = self._max_listings_per_day if limit is None else limit
        since = self._clock() - RATE_LIMIT_WINDOW
        count = self._properties.count_created_since(user_id, since)

        return RateLimitResult(
            allowed=count < cap,
            remaining=max(0, cap - count),
            limit=cap,
        )
