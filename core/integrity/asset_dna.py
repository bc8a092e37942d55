"""
Asset Verification Engine - Asset DNA Scoring and Identity

Computes the derived trust/verification record for a property and keeps
exactly one such record per property.

Scoring (all inputs optional, missing counts as zero):

Verification score (clamped to 100):
- +30 valid coordinate pair
- +20 at least 3 images
- +10 at least 1 video
- +10 title clear
- +10 encumbrance free
- +20 identity verification (fixed placeholder until a KYC signal exists)

Legal risk:
- base 0 (no litigation), 70 (pending), 30 (resolved)
- +20 title not clear, +10 not encumbrance free
- LOW < 30 <= MEDIUM < 60 <= HIGH

Trust score = verification + 10 (registration number) + 10 (verified), clamped.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Final, Optional, Union

from core.errors import InvalidInputError, TransientWriteError
from core.listing.repository import VerificationRepository
from core.listing.schema import (
    LegalRisk,
    ListingAttempt,
    LitigationStatus,
    Property,
    utc_now,
)
from core.listing.verification import (
    CompositeScores,
    GeoSource,
    GeoVerification,
    LegalStatus,
    VerificationRecord,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Scoring Constants
# =============================================================================

GEO_POINTS: Final[int] = 30
IMAGE_POINTS: Final[int] = 20
VIDEO_POINTS: Final[int] = 10
TITLE_CLEAR_POINTS: Final[int] = 10
ENCUMBRANCE_FREE_POINTS: Final[int] = 10
IDENTITY_PLACEHOLDER_POINTS: Final[int] = 20

MIN_IMAGES_FOR_POINTS: Final[int] = 3

REGISTRATION_TRUST_POINTS: Final[int] = 10
VERIFIED_TRUST_POINTS: Final[int] = 10

LITIGATION_BASE_RISK: Final[dict[LitigationStatus, int]] = {
    LitigationStatus.NONE: 0,
    LitigationStatus.PENDING: 70,
    LitigationStatus.RESOLVED: 30,
}
TITLE_NOT_CLEAR_RISK: Final[int] = 20
NOT_ENCUMBRANCE_FREE_RISK: Final[int] = 10

LOW_RISK_BELOW: Final[int] = 30
MEDIUM_RISK_BELOW: Final[int] = 60

# Placeholder until a market index is integrated
INVESTMENT_SCORE_PLACEHOLDER: Final[int] = 50

GEO_ACCURACY_METERS: Final[float] = 10.0

ASSET_ID_PREFIX: Final[str] = "MG"

_BASE36_DIGITS: Final[str] = "0123456789abcdefghijklmnopqrstuvwxyz"


# =============================================================================
# Score Card
# =============================================================================


@dataclass(frozen=True)
class ScoreCard:
    """Output of compute_scores."""

    verification_score: int
    legal_risk: LegalRisk
    trust_score: int
    price_vs_local_average: float = 0.0
    legal_risk_score: int = 0

    def to_dict(self) -> dict:
        return {
            "verification_score": self.verification_score,
            "legal_risk": self.legal_risk.value,
            "trust_score": self.trust_score,
            "price_vs_local_average": self.price_vs_local_average,
        }


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def assign_identity(now_ms: Optional[int] = None) -> str:
    """
    Generate an asset ID: MG-<base36 millis>-<8 hex chars>, upper-cased.

    Collisions are not prevented here; the unique key on asset_id in
    storage rejects them.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{ASSET_ID_PREFIX}-{_to_base36(now_ms)}-{secrets.token_hex(4)}".upper()


def bucket_legal_risk(score: int) -> LegalRisk:
    if score < LOW_RISK_BELOW:
        return LegalRisk.LOW
    if score < MEDIUM_RISK_BELOW:
        return LegalRisk.MEDIUM
    return LegalRisk.HIGH


def compute_scores(listing: Union[Property, ListingAttempt]) -> ScoreCard:
    """
    Deterministic scores from the listing's current field state.

    Never raises for missing optional fields.
    """
    media = listing.media
    legal = listing.legal

    verification = 0
    if listing.location is not None and listing.location.point is not None:
        verification += GEO_POINTS
    if len(media.images) >= MIN_IMAGES_FOR_POINTS:
        verification += IMAGE_POINTS
    if media.videos:
        verification += VIDEO_POINTS
    if legal.title_clear:
        verification += TITLE_CLEAR_POINTS
    if legal.encumbrance_free:
        verification += ENCUMBRANCE_FREE_POINTS
    # TODO: replace with the owner's KYC status once the identity service exposes it
    verification += IDENTITY_PLACEHOLDER_POINTS
    verification = min(100, verification)

    risk_score = LITIGATION_BASE_RISK[legal.litigation_status]
    if not legal.title_clear:
        risk_score += TITLE_NOT_CLEAR_RISK
    if not legal.encumbrance_free:
        risk_score += NOT_ENCUMBRANCE_FREE_RISK

    trust = verification
    if legal.rera_number:
        trust += REGISTRATION_TRUST_POINTS
    if getattr(listing, "is_verified", False):
        trust += VERIFIED_TRUST_POINTS
    trust = min(100, trust)

    return ScoreCard(
        verification_score=verification,
        legal_risk=bucket_legal_risk(risk_score),
        trust_score=trust,
        price_vs_local_average=0.0,
        legal_risk_score=risk_score,
    )


# =============================================================================
# Engine
# =============================================================================


class AssetVerificationEngine:
    """
    Owns asset identity and the one-per-property verification record.

    Usage:
        engine = AssetVerificationEngine(verification_repo)
        record = engine.upsert(prop, prop.asset_id)
        prop.asset_dna = record.to_summary()
    """

    def __init__(
        self,
        records: VerificationRepository,
        max_attempts: int = 3,
        clock: Callable = utc_now,
    ):
        self._records = records
        self._max_attempts = max(1, max_attempts)
        self._clock = clock

    assign_identity = staticmethod(assign_identity)
    compute_scores = staticmethod(compute_scores)

    def build_fields(self, prop: Property, scores: ScoreCard) -> dict:
        """Derived fields for a verification record."""
        now = self._clock()
        point = prop.location.point

        if point is not None:
            geo = GeoVerification(
                verified=True,
                verified_at=now,
                latitude=point.latitude,
                longitude=point.longitude,
                accuracy_meters=GEO_ACCURACY_METERS,
                source=GeoSource.MAP_API,
            )
        else:
            geo = GeoVerification(verified=False, source=GeoSource.MANUAL)

        legal = LegalStatus(
            risk_level=scores.legal_risk,
            title_clear=prop.legal.title_clear,
            encumbrance_free=prop.legal.encumbrance_free,
            litigation_count=1 if prop.legal.litigation_status == LitigationStatus.PENDING else 0,
            compliance_score=scores.trust_score,
            last_verified=now,
        )

        composite = CompositeScores(
            verification_score=scores.verification_score,
            trust_score=scores.trust_score,
            investment_score=INVESTMENT_SCORE_PLACEHOLDER,
            overall_score=(scores.verification_score + scores.trust_score) / 2,
        )

        return {
            "geo_verification": geo,
            "legal_status": legal,
            "scores": composite,
            "price_vs_local_average": scores.price_vs_local_average,
        }

    def upsert(self, prop: Property, asset_id: str) -> VerificationRecord:
        """
        Create or refresh the verification record for a property.

        The asset ID is written only when the record is created; an
        existing record keeps its stored ID whatever is passed here.
        Transient write conflicts are retried since the write is idempotent.

        Raises:
            InvalidInputError: If no asset ID is supplied
            TransientWriteError: If every attempt hit a write conflict
        """
        if not asset_id:
            raise InvalidInputError("asset_id is required")

        fields = self.build_fields(prop, compute_scores(prop))

        attempt = 1
        while True:
            try:
                return self._records.upsert(
                    property_id=prop.property_id,
                    set_on_insert={"asset_id": asset_id},
                    fields=fields,
                )
            except TransientWriteError:
                if attempt >= self._max_attempts:
                    raise
                logger.warning(
                    "Write conflict on verification record for %s (attempt %d/%d), retrying",
                    prop.property_id, attempt, self._max_attempts,
                )
                attempt += 1

    def refresh(self, prop: Property) -> VerificationRecord:
        """Upsert and copy the summary back onto the property (in place)."""
        record = self.upsert(prop, prop.asset_id)
        prop.asset_dna = record.to_summary()
        return record
