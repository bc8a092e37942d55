"""
Shared fixtures and builders for the listing integrity tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from core.integrity import InMemoryDispatcher, ListingIntegrityService
from core.listing import (
    Actor,
    InMemoryPropertyRepository,
    InMemoryVerificationRepository,
    Legal,
    ListingAttempt,
    Location,
    Media,
    Pricing,
    Property,
    PropertyCategory,
    PropertyStatus,
    ResidentialDetails,
    TransactionType,
    UserRole,
    GeoPoint,
)
from core.integrity.asset_dna import assign_identity
from utils.config import Config


def build_attempt(
    title: str = "Spacious 3BHK Apartment in Indiranagar",
    coordinates: Optional[tuple[float, float]] = None,
    city: str = "Bangalore",
    bhk: Optional[int] = 3,
    price: Optional[float] = 15_000_000,
    images: int = 3,
) -> ListingAttempt:
    """A residential sale attempt with sensible defaults."""
    return ListingAttempt(
        title=title,
        category=PropertyCategory.RESIDENTIAL,
        transaction_type=TransactionType.SELL,
        details=ResidentialDetails(bhk=bhk) if bhk else None,
        location=Location(
            country="India",
            state="Karnataka",
            city=city,
            area="Indiranagar",
            point=GeoPoint(*coordinates) if coordinates else None,
        ),
        pricing=Pricing(expected_price=price) if price else None,
        media=Media(images=[f"img-{i}.jpg" for i in range(images)]),
        legal=Legal(),
    )


def build_property(
    listed_by: str = "owner-1",
    status: PropertyStatus = PropertyStatus.APPROVED,
    created_at: Optional[datetime] = None,
    **attempt_kwargs,
) -> Property:
    """A stored-shape property built from build_attempt."""
    prop = Property.from_attempt(
        build_attempt(**attempt_kwargs),
        asset_id=assign_identity(),
        listed_by=listed_by,
        created_at=created_at,
    )
    prop.status = status
    return prop


@pytest.fixture
def owner():
    return Actor("owner-1", UserRole.OWNER)


@pytest.fixture
def other_user():
    return Actor("owner-2", UserRole.OWNER)


@pytest.fixture
def admin():
    return Actor("admin-1", UserRole.ADMIN)


@pytest.fixture
def properties():
    return InMemoryPropertyRepository()


@pytest.fixture
def records():
    return InMemoryVerificationRepository()


@pytest.fixture
def dispatcher():
    return InMemoryDispatcher()


@pytest.fixture
def config():
    return Config(
        listing_rate_limit=10,
        duplicate_radius_meters=50,
        duplicate_similarity_threshold=0.8,
        duplicate_max_matches=5,
        comparable_sample_size=20,
        min_comparables=3,
        price_deviation_threshold=0.5,
        min_submit_images=3,
        auto_approve_on_submit=True,
        upsert_max_attempts=3,
        persist=False,
    )


@pytest.fixture
def service(properties, records, dispatcher, config):
    return ListingIntegrityService(properties, records, dispatcher=dispatcher, config=config)


@pytest.fixture
def hours_ago():
    """Builder for aware UTC timestamps in the past."""
    def _hours_ago(hours: float) -> datetime:
        return datetime.now(timezone.utc) - timedelta(hours=hours)
    return _hours_ago


@pytest.fixture
def make_attempt():
    return build_attempt


@pytest.fixture
def make_property():
    return build_property
