"""
Tests for listing creation orchestration.

Tests covering:
1. Check order: rate limit, then duplicates, then price
2. Created listing is a DRAFT with a verification record
3. Price anomalies warn but never block
4. Service wiring from configuration
"""

from __future__ import annotations

import re

import pytest

from core.errors import ConflictError, RateLimitExceededError
from core.integrity import build_service
from core.listing import Actor, PropertyStatus, UserRole
from utils.config import Config


INDIRANAGAR = (77.5946, 12.9716)
INDIRANAGAR_NEARBY = (77.5948, 12.9718)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def user_a():
    return Actor("user-a", UserRole.OWNER)


@pytest.fixture
def user_b():
    return Actor("user-b", UserRole.OWNER)


@pytest.fixture
def indiranagar_listing(service, user_a, make_attempt):
    return service.create_listing(
        make_attempt(title="Spacious 3BHK Apartment in Indiranagar", coordinates=INDIRANAGAR),
        user_a,
    ).property


# =============================================================================
# Creation
# =============================================================================


class TestCreateListing:
    """Happy path."""

    def test_creates_draft_with_asset_id(self, service, owner, make_attempt):
        result = service.create_listing(make_attempt(), owner)
        prop = result.property

        assert prop.status == PropertyStatus.DRAFT
        assert prop.listed_by == "owner-1"
        assert re.match(r"^MG-[0-9A-Z]+-[0-9A-F]{8}$", prop.asset_id)
        assert result.warnings == []

    def test_verification_record_created(self, service, records, owner, make_attempt):
        prop = service.create_listing(make_attempt(), owner).property

        record = records.get_by_property(prop.property_id)
        assert record is not None
        assert record.asset_id == prop.asset_id
        assert prop.asset_dna.verification_score == record.scores.verification_score
        assert service.get_listing(prop.property_id).asset_dna == prop.asset_dna

    def test_verification_endpoint_data(self, service, owner, make_attempt):
        prop = service.create_listing(make_attempt(), owner).property
        assert service.get_verification(prop.property_id).property_id == prop.property_id

    def test_result_to_dict(self, service, owner, make_attempt):
        data = service.create_listing(make_attempt(), owner).to_dict()
        assert data["property"]["status"] == "DRAFT"
        assert data["warnings"] == []


class TestDuplicateBlocking:
    """Same asset, different lister."""

    def test_other_user_blocked_with_matches(self, service, user_b, indiranagar_listing, make_attempt):
        attempt = make_attempt(
            title="Spacious 3BHK Apartment Indiranagar",
            coordinates=INDIRANAGAR_NEARBY,
        )
        with pytest.raises(ConflictError) as exc_info:
            service.create_listing(attempt, user_b)

        matches = exc_info.value.matches
        assert [m["id"] for m in matches] == [indiranagar_listing.property_id]
        assert "similar_properties" in exc_info.value.to_dict()

    def test_same_user_allowed(self, service, user_a, indiranagar_listing, make_attempt):
        attempt = make_attempt(
            title="Spacious 3BHK Apartment Indiranagar",
            coordinates=INDIRANAGAR_NEARBY,
        )
        prop = service.create_listing(attempt, user_a).property
        assert prop.property_id != indiranagar_listing.property_id

    def test_nothing_persisted_when_blocked(self, service, properties, user_b, indiranagar_listing, make_attempt):
        with pytest.raises(ConflictError):
            service.create_listing(
                make_attempt(title="Spacious 3BHK Apartment Indiranagar", coordinates=INDIRANAGAR),
                user_b,
            )
        assert properties.count() == 1


class TestRateLimitBlocking:
    """Daily cap per lister."""

    def test_eleventh_listing_blocked(self, service, owner, make_attempt):
        for i in range(10):
            service.create_listing(make_attempt(title=f"Flat {i}"), owner)

        with pytest.raises(RateLimitExceededError) as exc_info:
            service.create_listing(make_attempt(title="Flat 11"), owner)
        assert exc_info.value.remaining == 0
        assert exc_info.value.status_code == 429

    def test_rate_limit_checked_before_duplicates(self, service, user_b, indiranagar_listing, make_attempt):
        for i in range(10):
            service.create_listing(make_attempt(title=f"Flat {i}"), user_b)

        duplicate = make_attempt(
            title="Spacious 3BHK Apartment Indiranagar",
            coordinates=INDIRANAGAR_NEARBY,
        )
        with pytest.raises(RateLimitExceededError):
            service.create_listing(duplicate, user_b)

    def test_configured_cap(self, service, config, owner, make_attempt):
        config.listing_rate_limit = 2
        service.create_listing(make_attempt(title="One"), owner)
        service.create_listing(make_attempt(title="Two"), owner)
        with pytest.raises(RateLimitExceededError):
            service.create_listing(make_attempt(title="Three"), owner)


class TestPriceWarnings:
    """Advisory price anomaly."""

    def test_anomaly_warns_but_creates(self, service, properties, owner, make_property, make_attempt):
        for _ in range(3):
            properties.add(make_property(listed_by="seed", bhk=2, price=10_000_000))

        result = service.create_listing(make_attempt(bhk=2, price=30_000_000), owner)

        assert result.warnings == ["Price is more than 2x the local average"]
        assert result.property.status == PropertyStatus.DRAFT

    def test_no_comparables_no_warning(self, service, owner, make_attempt):
        result = service.create_listing(make_attempt(price=999_000_000_000), owner)
        assert result.warnings == []


class TestBuildService:
    """Wiring from configuration."""

    def test_in_memory_by_default(self):
        service = build_service(Config(persist=False))
        assert service.properties.count() == 0

    def test_persists_under_data_dir(self, tmp_path, owner, make_attempt):
        config = Config(persist=True, data_dir=str(tmp_path))
        prop = build_service(config).create_listing(make_attempt(), owner).property

        reopened = build_service(config)
        assert reopened.get_listing(prop.property_id).asset_id == prop.asset_id
        assert reopened.records.get_by_property(prop.property_id) is not None
        assert (tmp_path / "properties.json").exists()
