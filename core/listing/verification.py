"""
Verification Record - Derived Trust Document per Property

One record exists per property, keyed uniquely by property_id.

Principles:
- The asset_id is set when the record is inserted and never reassigned
- Every other field is derived and refreshed on recomputation
- The record is deleted only together with its property
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from core.listing.schema import AssetDNASummary, LegalRisk, utc_now


# =============================================================================
# Enums
# =============================================================================


class GeoSource(Enum):
    """Where the coordinates of a geo verification came from."""

    MANUAL = "MANUAL"
    GPS = "GPS"
    MAP_API = "MAP_API"


# =============================================================================
# Sub-records
# =============================================================================


@dataclass(frozen=True)
class GeoVerification:
    """Geo-verification state."""

    verified: bool = False
    verified_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy_meters: Optional[float] = None
    source: GeoSource = GeoSource.MANUAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "verified": self.verified,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_meters": self.accuracy_meters,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GeoVerification":
        return cls(
            verified=data.get("verified", False),
            verified_at=(
                datetime.fromisoformat(data["verified_at"])
                if data.get("verified_at")
                else None
            ),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            accuracy_meters=data.get("accuracy_meters"),
            source=GeoSource(data.get("source", GeoSource.MANUAL.value)),
        )


@dataclass(frozen=True)
class LegalStatus:
    """Legal-status state."""

    risk_level: LegalRisk = LegalRisk.MEDIUM
    title_clear: bool = False
    encumbrance_free: bool = False
    litigation_count: int = 0
    compliance_score: int = 0
    last_verified: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "title_clear": self.title_clear,
            "encumbrance_free": self.encumbrance_free,
            "litigation_count": self.litigation_count,
            "compliance_score": self.compliance_score,
            "last_verified": self.last_verified.isoformat() if self.last_verified else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LegalStatus":
        return cls(
            risk_level=LegalRisk(data.get("risk_level", LegalRisk.MEDIUM.value)),
            title_clear=data.get("title_clear", False),
            encumbrance_free=data.get("encumbrance_free", False),
            litigation_count=data.get("litigation_count", 0),
            compliance_score=data.get("compliance_score", 0),
            last_verified=(
                datetime.fromisoformat(data["last_verified"])
                if data.get("last_verified")
                else None
            ),
        )


@dataclass(frozen=True)
class CompositeScores:
    """Composite 0-100 scores."""

    verification_score: int = 0
    trust_score: int = 0
    investment_score: int = 0
    overall_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "verification_score": self.verification_score,
            "trust_score": self.trust_score,
            "investment_score": self.investment_score,
            "overall_score": self.overall_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompositeScores":
        return cls(
            verification_score=data.get("verification_score", 0),
            trust_score=data.get("trust_score", 0),
            investment_score=data.get("investment_score", 0),
            overall_score=data.get("overall_score", 0.0),
        )


# =============================================================================
# Verification Record
# =============================================================================


@dataclass
class VerificationRecord:
    """
    Derived trust/verification document for one property.

    asset_id is immutable once stored; the repository never overwrites it.
    """

    asset_id: str
    property_id: str
    geo_verification: GeoVerification = field(default_factory=GeoVerification)
    legal_status: LegalStatus = field(default_factory=LegalStatus)
    scores: CompositeScores = field(default_factory=CompositeScores)
    price_vs_local_average: float = 0.0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    # Fields a refresh is allowed to overwrite
    DERIVED_FIELDS = (
        "geo_verification",
        "legal_status",
        "scores",
        "price_vs_local_average",
    )

    def to_summary(self) -> AssetDNASummary:
        """Subset copied back onto the property."""
        return AssetDNASummary(
            verification_score=self.scores.verification_score,
            geo_verified=self.geo_verification.verified,
            legal_risk=self.legal_status.risk_level,
            market_activity_score=0,
            trust_score=self.scores.trust_score,
            price_vs_local_average=self.price_vs_local_average,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialisation."""
        return {
            "asset_id": self.asset_id,
            "property_id": self.property_id,
            "geo_verification": self.geo_verification.to_dict(),
            "legal_status": self.legal_status.to_dict(),
            "scores": self.scores.to_dict(),
            "price_vs_local_average": self.price_vs_local_average,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VerificationRecord":
        """Create from dictionary."""
        return cls(
            asset_id=data["asset_id"],
            property_id=data["property_id"],
            geo_verification=GeoVerification.from_dict(data.get("geo_verification", {})),
            legal_status=LegalStatus.from_dict(data.get("legal_status", {})),
            scores=CompositeScores.from_dict(data.get("scores", {})),
            price_vs_local_average=data.get("price_vs_local_average", 0.0),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
