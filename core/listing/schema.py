"""
Listing Schema - Property, Category Variants and Listing Attempts

Defines the canonical shape of a listed property.

Category-specific details are a tagged union keyed by category:
- RESIDENTIAL -> ResidentialDetails
- COMMERCIAL / INDUSTRIAL -> CommercialDetails
- LAND -> LandDetails
- SPECIAL -> no variant

Payload blocks for other categories are dropped on parse, never merged.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Final, Optional, Union

from core.errors import InvalidInputError


# =============================================================================
# Enums
# =============================================================================


class TransactionType(Enum):
    """How the asset is being offered."""

    SELL = "SELL"
    RENT = "RENT"
    LEASE = "LEASE"
    SUB_LEASE = "SUB_LEASE"
    FRACTIONAL = "FRACTIONAL"


class PropertyCategory(Enum):
    """Top-level asset category."""

    RESIDENTIAL = "RESIDENTIAL"
    COMMERCIAL = "COMMERCIAL"
    INDUSTRIAL = "INDUSTRIAL"
    LAND = "LAND"
    SPECIAL = "SPECIAL"


class PropertyStatus(Enum):
    """Visibility lifecycle status."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAUSED = "PAUSED"
    SOLD = "SOLD"
    RENTED = "RENTED"


class LitigationStatus(Enum):
    """Litigation state declared on the legal block."""

    NONE = "NONE"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class LegalRisk(Enum):
    """Bucketed legal risk."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AreaUnit(Enum):
    """Unit for land plot area."""

    SQFT = "SQFT"
    SQMT = "SQMT"
    ACRE = "ACRE"
    HECTARE = "HECTARE"


class UserRole(Enum):
    """Roles issued by the identity service."""

    USER = "USER"
    OWNER = "OWNER"
    BROKER = "BROKER"
    DEVELOPER = "DEVELOPER"
    ADMIN = "ADMIN"


# =============================================================================
# Constants
# =============================================================================

# Statuses a property can be found in by duplicate detection
ACTIVE_STATUSES: Final[frozenset[PropertyStatus]] = frozenset({
    PropertyStatus.DRAFT,
    PropertyStatus.PENDING,
    PropertyStatus.APPROVED,
    PropertyStatus.PAUSED,
})

# Default public listing view (PAUSED is hidden)
PUBLIC_STATUSES: Final[frozenset[PropertyStatus]] = frozenset({
    PropertyStatus.APPROVED,
    PropertyStatus.PENDING,
    PropertyStatus.DRAFT,
})

# Owner's own-listing view also shows paused listings
OWNER_STATUSES: Final[frozenset[PropertyStatus]] = PUBLIC_STATUSES | {PropertyStatus.PAUSED}

# Mean Earth radius
EARTH_RADIUS_METERS: Final[float] = 6_371_008.8

# Approximate sqft per bedroom, used as a crude residential area proxy
AREA_PER_BHK: Final[int] = 1000

# No transition is defined out of these
TERMINAL_STATUSES: Final[frozenset[PropertyStatus]] = frozenset({
    PropertyStatus.REJECTED,
    PropertyStatus.SOLD,
    PropertyStatus.RENTED,
})


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_property_id() -> str:
    """Generate a unique property ID."""
    return f"PROP-{uuid.uuid4().hex[:12].upper()}"


def parse_enum(enum_cls, value, field_name: str, default=None):
    """Parse an enum value, treating empty strings as absent."""
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"Invalid {field_name}: {value!r}. Allowed: {allowed}")


def parse_number(value, field_name: str, integer: bool = False, signed: bool = False):
    """
    Parse an optional finite number, accepting numeric strings.

    Negative values are rejected unless signed is set.

    Raises:
        InvalidInputError: For anything that is not such a number
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {field_name}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid {field_name}: {value!r}")
    if not math.isfinite(number) or (number < 0 and not signed):
        raise InvalidInputError(f"Invalid {field_name}: {value!r}")
    if integer:
        if not number.is_integer():
            raise InvalidInputError(f"{field_name} must be a whole number: {value!r}")
        return int(number)
    return number


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# Location
# =============================================================================


@dataclass(frozen=True)
class GeoPoint:
    """
    A WGS84 point.

    Stored and serialised GeoJSON-style as [longitude, latitude].
    """

    longitude: float
    latitude: float

    def __post_init__(self):
        for name in ("longitude", "latitude"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInputError(f"Invalid {name}: {value!r}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidInputError(f"Longitude out of range: {self.longitude}")
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidInputError(f"Latitude out of range: {self.latitude}")

    @classmethod
    def parse(cls, value: Any) -> Optional["GeoPoint"]:
        """
        Parse a coordinate payload.

        Accepts a GeoPoint, a [lng, lat] pair, or a GeoJSON Point object.
        Returns None for a missing value or the [0, 0] placeholder.

        Raises:
            InvalidInputError: If the payload is present but malformed
        """
        if value is None or isinstance(value, GeoPoint):
            return value

        pair = value
        if isinstance(value, dict):
            pair = value.get("coordinates")
            if pair is None:
                return None

        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidInputError(
                f"Coordinates must be a [longitude, latitude] pair, got {pair!r}"
            )

        try:
            lng, lat = (float(component) for component in pair)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Coordinates must be numeric, got {pair!r}")

        if lng == 0 and lat == 0:
            return None

        return cls(longitude=lng, latitude=lat)

    def to_pair(self) -> list[float]:
        """GeoJSON coordinate order."""
        return [self.longitude, self.latitude]

    def distance_to(self, other: "GeoPoint") -> float:
        """Great-circle distance in metres (Haversine)."""
        lat1_rad = math.radians(self.latitude)
        lat2_rad = math.radians(other.latitude)
        dlat = math.radians(other.latitude - self.latitude)
        dlon = math.radians(other.longitude - self.longitude)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
        )
        return EARTH_RADIUS_METERS * 2 * math.asin(math.sqrt(a))


@dataclass
class Location:
    """Postal location plus an optional geographic point."""

    country: str = ""
    state: str = ""
    city: str = ""
    area: str = ""
    locality: str = ""
    pincode: str = ""
    address: str = ""
    landmark: Optional[str] = None
    point: Optional[GeoPoint] = None

    @property
    def has_point(self) -> bool:
        return self.point is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "area": self.area,
            "locality": self.locality,
            "pincode": self.pincode,
            "address": self.address,
            "landmark": self.landmark,
            "coordinates": (
                {"type": "Point", "coordinates": self.point.to_pair()}
                if self.point
                else None
            ),
        }

    def to_event_dict(self) -> dict:
        """Subset carried by public lifecycle events."""
        return {"city": self.city, "area": self.area, "state": self.state}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Location":
        """Create from dictionary."""
        data = data or {}
        return cls(
            country=data.get("country") or "",
            state=data.get("state") or "",
            city=data.get("city") or "",
            area=data.get("area") or "",
            locality=data.get("locality") or "",
            pincode=data.get("pincode") or "",
            address=data.get("address") or "",
            landmark=data.get("landmark"),
            point=GeoPoint.parse(data.get("coordinates")),
        )


# =============================================================================
# Category Variants
# =============================================================================


@dataclass
class ResidentialDetails:
    """Residential-only attributes."""

    bhk: Optional[int] = None
    bathrooms: Optional[int] = None
    balconies: Optional[int] = None
    furnishing: Optional[str] = None  # FULLY_FURNISHED, SEMI_FURNISHED, UNFURNISHED
    floor: Optional[int] = None
    total_floors: Optional[int] = None
    parking: Optional[str] = None  # OPEN, COVERED, NONE

    @property
    def unit_area(self) -> float:
        return float(self.bhk * AREA_PER_BHK) if self.bhk else 0.0

    def to_dict(self) -> dict:
        return {
            "bhk": self.bhk,
            "bathrooms": self.bathrooms,
            "balconies": self.balconies,
            "furnishing": self.furnishing,
            "floor": self.floor,
            "total_floors": self.total_floors,
            "parking": self.parking,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResidentialDetails":
        return cls(
            bhk=parse_number(data.get("bhk"), "bhk", integer=True),
            bathrooms=parse_number(data.get("bathrooms"), "bathrooms", integer=True),
            balconies=parse_number(data.get("balconies"), "balconies", integer=True),
            furnishing=data.get("furnishing") or None,
            floor=parse_number(data.get("floor"), "floor", integer=True, signed=True),
            total_floors=parse_number(data.get("total_floors"), "total_floors", integer=True),
            parking=data.get("parking") or None,
        )


@dataclass
class CommercialDetails:
    """Commercial and industrial attributes."""

    built_up_area: Optional[float] = None
    carpet_area: Optional[float] = None
    power_load: Optional[float] = None  # kVA
    floor_load_capacity: Optional[float] = None
    ceiling_height: Optional[float] = None
    dock_available: Optional[bool] = None
    freight_elevator: Optional[bool] = None

    @property
    def unit_area(self) -> float:
        return float(self.built_up_area or 0)

    def to_dict(self) -> dict:
        return {
            "built_up_area": self.built_up_area,
            "carpet_area": self.carpet_area,
            "power_load": self.power_load,
            "floor_load_capacity": self.floor_load_capacity,
            "ceiling_height": self.ceiling_height,
            "dock_available": self.dock_available,
            "freight_elevator": self.freight_elevator,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CommercialDetails":
        return cls(
            built_up_area=parse_number(data.get("built_up_area"), "built_up_area"),
            carpet_area=parse_number(data.get("carpet_area"), "carpet_area"),
            power_load=parse_number(data.get("power_load"), "power_load"),
            floor_load_capacity=parse_number(data.get("floor_load_capacity"), "floor_load_capacity"),
            ceiling_height=parse_number(data.get("ceiling_height"), "ceiling_height"),
            dock_available=data.get("dock_available"),
            freight_elevator=data.get("freight_elevator"),
        )


@dataclass
class LandDetails:
    """Land-only attributes."""

    plot_area: Optional[float] = None
    area_unit: AreaUnit = AreaUnit.SQFT
    frontage: Optional[float] = None
    depth: Optional[float] = None
    road_access_width: Optional[float] = None
    zoning_type: Optional[str] = None
    water_available: Optional[bool] = None
    electricity_available: Optional[bool] = None
    fsi: Optional[float] = None

    @property
    def unit_area(self) -> float:
        return float(self.plot_area or 0)

    def to_dict(self) -> dict:
        return {
            "plot_area": self.plot_area,
            "area_unit": self.area_unit.value,
            "frontage": self.frontage,
            "depth": self.depth,
            "road_access_width": self.road_access_width,
            "zoning_type": self.zoning_type,
            "water_available": self.water_available,
            "electricity_available": self.electricity_available,
            "fsi": self.fsi,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LandDetails":
        return cls(
            plot_area=parse_number(data.get("plot_area"), "plot_area"),
            area_unit=parse_enum(AreaUnit, data.get("area_unit"), "area_unit", AreaUnit.SQFT),
            frontage=parse_number(data.get("frontage"), "frontage"),
            depth=parse_number(data.get("depth"), "depth"),
            road_access_width=parse_number(data.get("road_access_width"), "road_access_width"),
            zoning_type=data.get("zoning_type"),
            water_available=data.get("water_available"),
            electricity_available=data.get("electricity_available"),
            fsi=parse_number(data.get("fsi"), "fsi"),
        )


CategoryDetails = Union[ResidentialDetails, CommercialDetails, LandDetails]

# Payload key and variant type for each category that carries one
VARIANT_FOR_CATEGORY: Final[dict[PropertyCategory, tuple[str, type]]] = {
    PropertyCategory.RESIDENTIAL: ("residential", ResidentialDetails),
    PropertyCategory.COMMERCIAL: ("commercial", CommercialDetails),
    PropertyCategory.INDUSTRIAL: ("commercial", CommercialDetails),
    PropertyCategory.LAND: ("land", LandDetails),
}


def check_variant(category: PropertyCategory, details: Optional[CategoryDetails]) -> None:
    """
    Check that a variant block belongs to its category.

    Raises:
        InvalidInputError: If the variant type does not match
    """
    if details is None:
        return
    expected = VARIANT_FOR_CATEGORY.get(category)
    if expected is None or not isinstance(details, expected[1]):
        raise InvalidInputError(
            f"{type(details).__name__} is not valid for category {category.value}"
        )


def parse_variant(category: PropertyCategory, data: dict) -> Optional[CategoryDetails]:
    """Pick the variant block matching the category out of a payload."""
    expected = VARIANT_FOR_CATEGORY.get(category)
    if expected is None:
        return None
    key, variant_cls = expected
    block = data.get(key)
    if not block:
        return None
    if isinstance(block, variant_cls):
        return block
    return variant_cls.from_dict(block)


def variant_to_dict(details: Optional[CategoryDetails]) -> dict:
    """Serialise a variant under its payload key."""
    if details is None:
        return {}
    if isinstance(details, ResidentialDetails):
        return {"residential": details.to_dict()}
    if isinstance(details, LandDetails):
        return {"land": details.to_dict()}
    return {"commercial": details.to_dict()}


# =============================================================================
# Pricing, Media, Legal
# =============================================================================


@dataclass
class Pricing:
    """Pricing variant: one of expected price, rent amount or lease value."""

    expected_price: Optional[float] = None
    rent_amount: Optional[float] = None
    lease_value: Optional[float] = None
    price_negotiable: bool = True
    maintenance_charges: Optional[float] = None
    security_deposit: Optional[float] = None
    currency: str = "INR"

    @property
    def amount(self) -> float:
        """The headline amount, whichever variant is set."""
        return float(self.expected_price or self.rent_amount or self.lease_value or 0)

    def to_dict(self) -> dict:
        return {
            "expected_price": self.expected_price,
            "rent_amount": self.rent_amount,
            "lease_value": self.lease_value,
            "price_negotiable": self.price_negotiable,
            "maintenance_charges": self.maintenance_charges,
            "security_deposit": self.security_deposit,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Pricing"]:
        if not data:
            return None
        return cls(
            expected_price=parse_number(data.get("expected_price"), "expected_price"),
            rent_amount=parse_number(data.get("rent_amount"), "rent_amount"),
            lease_value=parse_number(data.get("lease_value"), "lease_value"),
            price_negotiable=data.get("price_negotiable", True),
            maintenance_charges=parse_number(data.get("maintenance_charges"), "maintenance_charges"),
            security_deposit=parse_number(data.get("security_deposit"), "security_deposit"),
            currency=data.get("currency") or "INR",
        )


@dataclass
class Media:
    """Media references (URLs or storage keys)."""

    images: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)
    floor_plans: list[str] = field(default_factory=list)
    virtual_tour: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "images": list(self.images),
            "videos": list(self.videos),
            "floor_plans": list(self.floor_plans),
            "virtual_tour": self.virtual_tour,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Media":
        data = data or {}
        return cls(
            images=list(data.get("images") or []),
            videos=list(data.get("videos") or []),
            floor_plans=list(data.get("floor_plans") or []),
            virtual_tour=data.get("virtual_tour"),
        )


@dataclass
class Legal:
    """Legal and compliance flags."""

    rera_number: Optional[str] = None  # Real-estate regulator registration
    title_deed: Optional[str] = None
    encumbrance_certificate: Optional[str] = None
    title_clear: bool = False
    encumbrance_free: bool = False
    litigation_status: LitigationStatus = LitigationStatus.NONE

    def to_dict(self) -> dict:
        return {
            "rera_number": self.rera_number,
            "title_deed": self.title_deed,
            "encumbrance_certificate": self.encumbrance_certificate,
            "title_clear": self.title_clear,
            "encumbrance_free": self.encumbrance_free,
            "litigation_status": self.litigation_status.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Legal":
        data = data or {}
        return cls(
            rera_number=data.get("rera_number") or None,
            title_deed=data.get("title_deed"),
            encumbrance_certificate=data.get("encumbrance_certificate"),
            title_clear=bool(data.get("title_clear", False)),
            encumbrance_free=bool(data.get("encumbrance_free", False)),
            litigation_status=parse_enum(
                LitigationStatus,
                data.get("litigation_status"),
                "litigation_status",
                LitigationStatus.NONE,
            ),
        )


# =============================================================================
# Asset DNA Summary
# =============================================================================


@dataclass(frozen=True)
class AssetDNASummary:
    """Subset of the verification record copied onto the property for fast reads."""

    verification_score: int = 0
    geo_verified: bool = False
    legal_risk: LegalRisk = LegalRisk.MEDIUM
    market_activity_score: int = 0
    trust_score: int = 0
    price_vs_local_average: float = 0.0

    def to_dict(self) -> dict:
        return {
            "verification_score": self.verification_score,
            "geo_verified": self.geo_verified,
            "legal_risk": self.legal_risk.value,
            "market_activity_score": self.market_activity_score,
            "trust_score": self.trust_score,
            "price_vs_local_average": self.price_vs_local_average,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "AssetDNASummary":
        data = data or {}
        return cls(
            verification_score=data.get("verification_score", 0),
            geo_verified=data.get("geo_verified", False),
            legal_risk=LegalRisk(data.get("legal_risk", LegalRisk.MEDIUM.value)),
            market_activity_score=data.get("market_activity_score", 0),
            trust_score=data.get("trust_score", 0),
            price_vs_local_average=data.get("price_vs_local_average", 0.0),
        )


# =============================================================================
# Listing Attempt
# =============================================================================


@dataclass
class ListingAttempt:
    """
    An inbound creation request.

    Never persisted; evaluated by fraud checks before a Property is committed.
    """

    title: str
    category: PropertyCategory
    transaction_type: TransactionType
    description: str = ""
    sub_type: str = ""
    details: Optional[CategoryDetails] = None
    location: Location = field(default_factory=Location)
    pricing: Optional[Pricing] = None
    media: Media = field(default_factory=Media)
    legal: Legal = field(default_factory=Legal)

    def __post_init__(self):
        if not isinstance(self.title, str) or not self.title.strip():
            raise InvalidInputError("title is required")
        self.title = self.title.strip()
        check_variant(self.category, self.details)

    @classmethod
    def from_dict(cls, data: dict) -> "ListingAttempt":
        """
        Create from a request payload.

        Raises:
            InvalidInputError: For a missing title, unknown enum values or bad coordinates
        """
        category = parse_enum(PropertyCategory, data.get("category"), "category")
        transaction_type = parse_enum(
            TransactionType, data.get("transaction_type"), "transaction_type"
        )
        if category is None:
            raise InvalidInputError("category is required")
        if transaction_type is None:
            raise InvalidInputError("transaction_type is required")

        return cls(
            title=data.get("title") or "",
            category=category,
            transaction_type=transaction_type,
            description=data.get("description") or "",
            sub_type=data.get("sub_type") or "",
            details=parse_variant(category, data),
            location=Location.from_dict(data.get("location")),
            pricing=Pricing.from_dict(data.get("pricing")),
            media=Media.from_dict(data.get("media")),
            legal=Legal.from_dict(data.get("legal")),
        )


# =============================================================================
# Property
# =============================================================================


@dataclass
class Property:
    """
    A listed asset.

    Owned by its lister. Mutated only through the lifecycle controller.
    """

    property_id: str
    asset_id: str
    listed_by: str
    title: str
    category: PropertyCategory
    transaction_type: TransactionType
    description: str = ""
    sub_type: str = ""
    details: Optional[CategoryDetails] = None
    location: Location = field(default_factory=Location)
    pricing: Optional[Pricing] = None
    media: Media = field(default_factory=Media)
    legal: Legal = field(default_factory=Legal)
    status: PropertyStatus = PropertyStatus.DRAFT
    is_verified: bool = False
    asset_dna: AssetDNASummary = field(default_factory=AssetDNASummary)
    views: int = 0
    saves: int = 0
    inquiries: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    published_at: Optional[datetime] = None

    def __post_init__(self):
        check_variant(self.category, self.details)

    @classmethod
    def from_attempt(
        cls,
        attempt: ListingAttempt,
        asset_id: str,
        listed_by: str,
        created_at: Optional[datetime] = None,
    ) -> "Property":
        """Build a new DRAFT property from an accepted attempt."""
        now = created_at or utc_now()
        return cls(
            property_id=generate_property_id(),
            asset_id=asset_id,
            listed_by=listed_by,
            title=attempt.title,
            category=attempt.category,
            transaction_type=attempt.transaction_type,
            description=attempt.description,
            sub_type=attempt.sub_type,
            details=attempt.details,
            location=attempt.location,
            pricing=attempt.pricing,
            media=attempt.media,
            legal=attempt.legal,
            status=PropertyStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )

    def is_owned_by(self, user_id: str) -> bool:
        return self.listed_by == user_id

    def copy(self, **changes) -> "Property":
        """Shallow copy with field overrides."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        data = {
            "property_id": self.property_id,
            "asset_id": self.asset_id,
            "listed_by": self.listed_by,
            "title": self.title,
            "category": self.category.value,
            "transaction_type": self.transaction_type.value,
            "description": self.description,
            "sub_type": self.sub_type,
            "location": self.location.to_dict(),
            "pricing": self.pricing.to_dict() if self.pricing else None,
            "media": self.media.to_dict(),
            "legal": self.legal.to_dict(),
            "status": self.status.value,
            "is_verified": self.is_verified,
            "asset_dna": self.asset_dna.to_dict(),
            "views": self.views,
            "saves": self.saves,
            "inquiries": self.inquiries,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "published_at": _iso(self.published_at),
        }
        data.update(variant_to_dict(self.details))
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Property":
        """
        Create from dictionary.

        Raises:
            InvalidInputError: For a missing title, category or transaction type
        """
        category = parse_enum(PropertyCategory, data.get("category"), "category")
        if category is None:
            raise InvalidInputError("category is required")
        transaction_type = parse_enum(
            TransactionType, data.get("transaction_type"), "transaction_type"
        )
        if transaction_type is None:
            raise InvalidInputError("transaction_type is required")
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise InvalidInputError("title is required")

        return cls(
            property_id=data["property_id"],
            asset_id=data["asset_id"],
            listed_by=data["listed_by"],
            title=title.strip(),
            category=category,
            transaction_type=transaction_type,
            description=data.get("description", ""),
            sub_type=data.get("sub_type", ""),
            details=parse_variant(category, data),
            location=Location.from_dict(data.get("location")),
            pricing=Pricing.from_dict(data.get("pricing")),
            media=Media.from_dict(data.get("media")),
            legal=Legal.from_dict(data.get("legal")),
            status=PropertyStatus(data.get("status", PropertyStatus.DRAFT.value)),
            is_verified=data.get("is_verified", False),
            asset_dna=AssetDNASummary.from_dict(data.get("asset_dna")),
            views=data.get("views", 0),
            saves=data.get("saves", 0),
            inquiries=data.get("inquiries", 0),
            created_at=_parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=_parse_datetime(data.get("updated_at")) or utc_now(),
            published_at=_parse_datetime(data.get("published_at")),
        )


# =============================================================================
# Actor
# =============================================================================


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as asserted by the identity service."""

    user_id: str
    role: UserRole = UserRole.USER

    def __post_init__(self):
        if not self.user_id:
            raise InvalidInputError("user_id is required")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def parse(cls, user_id: str, role: Optional[str] = None) -> "Actor":
        return cls(
            user_id=user_id,
            role=parse_enum(UserRole, role, "role", UserRole.USER),
        )
