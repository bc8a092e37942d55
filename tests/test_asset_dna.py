"""
Tests for the Asset Verification Engine.

Tests covering:
1. Asset ID format
2. Deterministic scoring rules
3. Legal risk buckets
4. One verification record per property, asset ID never overwritten
5. Concurrent upserts and transient-conflict retries
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from core.errors import InvalidInputError, TransientWriteError
from core.integrity.asset_dna import (
    AssetVerificationEngine,
    assign_identity,
    bucket_legal_risk,
    compute_scores,
)
from core.listing import (
    GeoPoint,
    GeoSource,
    InMemoryVerificationRepository,
    Legal,
    LegalRisk,
    LitigationStatus,
    Media,
)


ASSET_ID_PATTERN = re.compile(r"^MG-[0-9A-Z]+-[0-9A-F]{8}$")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def bare_property(make_property):
    """Nothing optional set: no point, no media, no legal flags."""
    prop = make_property(coordinates=None, images=0)
    prop.legal = Legal()
    return prop


@pytest.fixture
def complete_property(make_property):
    prop = make_property(coordinates=(77.5946, 12.9716), images=3)
    prop.media.videos = ["tour.mp4"]
    prop.legal = Legal(
        rera_number="PRM/KA/RERA/1251",
        title_clear=True,
        encumbrance_free=True,
    )
    prop.is_verified = True
    return prop


@pytest.fixture
def engine(records):
    return AssetVerificationEngine(records)


class FlakyVerificationRepository(InMemoryVerificationRepository):
    """Fails the first N upserts with a transient write conflict."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.calls = 0

    def upsert(self, property_id, set_on_insert, fields):
        self.calls += 1
        if self.calls <= self.failures:
            raise TransientWriteError("write conflict")
        return super().upsert(property_id, set_on_insert, fields)


# =============================================================================
# Identity
# =============================================================================


class TestAssignIdentity:
    """MG-<base36 millis>-<8 hex>, upper-cased."""

    def test_format(self):
        assert ASSET_ID_PATTERN.match(assign_identity())

    def test_timestamp_is_base36(self):
        assert assign_identity(now_ms=0).startswith("MG-0-")
        assert assign_identity(now_ms=35).startswith("MG-Z-")
        assert assign_identity(now_ms=36).startswith("MG-10-")

    def test_random_suffix_differs(self):
        ids = {assign_identity(now_ms=1_700_000_000_000) for _ in range(50)}
        assert len(ids) > 1


# =============================================================================
# Scoring
# =============================================================================


class TestComputeScores:
    """Verification, legal risk and trust scoring."""

    def test_bare_listing_gets_identity_placeholder_only(self, bare_property):
        scores = compute_scores(bare_property)
        assert scores.verification_score == 20
        assert scores.trust_score == 20
        # Title not clear (+20) and not encumbrance free (+10)
        assert scores.legal_risk_score == 30
        assert scores.legal_risk == LegalRisk.MEDIUM

    def test_complete_listing_clamped_to_100(self, complete_property):
        scores = compute_scores(complete_property)
        assert scores.verification_score == 100
        assert scores.trust_score == 100
        assert scores.legal_risk == LegalRisk.LOW

    def test_points_add_up(self, bare_property):
        bare_property.location.point = GeoPoint(77.59, 12.97)
        bare_property.media = Media(images=["1", "2", "3"], videos=["v"])
        assert compute_scores(bare_property).verification_score == 30 + 20 + 10 + 20

    def test_two_images_earn_nothing(self, bare_property):
        bare_property.media = Media(images=["1", "2"])
        assert compute_scores(bare_property).verification_score == 20

    def test_pending_litigation_is_high_risk(self, complete_property):
        complete_property.legal.litigation_status = LitigationStatus.PENDING
        scores = compute_scores(complete_property)
        assert scores.legal_risk_score == 70
        assert scores.legal_risk == LegalRisk.HIGH

    def test_resolved_litigation_is_medium_risk(self, complete_property):
        complete_property.legal.litigation_status = LitigationStatus.RESOLVED
        assert compute_scores(complete_property).legal_risk == LegalRisk.MEDIUM

    def test_trust_bonuses(self, bare_property):
        bare_property.legal.rera_number = "RERA-1"
        assert compute_scores(bare_property).trust_score == 30
        bare_property.is_verified = True
        assert compute_scores(bare_property).trust_score == 40

    def test_deterministic(self, complete_property):
        assert compute_scores(complete_property) == compute_scores(complete_property)

    def test_scores_in_range(self, bare_property, complete_property):
        for prop in (bare_property, complete_property):
            scores = compute_scores(prop)
            assert 0 <= scores.verification_score <= 100
            assert 0 <= scores.trust_score <= 100

    @pytest.mark.parametrize("score,expected", [
        (0, LegalRisk.LOW),
        (29, LegalRisk.LOW),
        (30, LegalRisk.MEDIUM),
        (59, LegalRisk.MEDIUM),
        (60, LegalRisk.HIGH),
        (100, LegalRisk.HIGH),
    ])
    def test_risk_buckets(self, score, expected):
        assert bucket_legal_risk(score) == expected


# =============================================================================
# Upsert
# =============================================================================


class TestUpsert:
    """Exactly one record per property."""

    def test_creates_record(self, engine, records, complete_property):
        record = engine.upsert(complete_property, complete_property.asset_id)
        assert record.asset_id == complete_property.asset_id
        assert record.property_id == complete_property.property_id
        assert record.geo_verification.verified is True
        assert record.geo_verification.source == GeoSource.MAP_API
        assert record.geo_verification.latitude == 12.9716
        assert record.scores.investment_score == 50
        assert record.scores.overall_score == 100
        assert records.count() == 1

    def test_no_point_is_manual_unverified(self, engine, bare_property):
        record = engine.upsert(bare_property, bare_property.asset_id)
        assert record.geo_verification.verified is False
        assert record.geo_verification.source == GeoSource.MANUAL

    def test_pending_litigation_counted(self, engine, complete_property):
        complete_property.legal.litigation_status = LitigationStatus.PENDING
        record = engine.upsert(complete_property, complete_property.asset_id)
        assert record.legal_status.litigation_count == 1
        assert record.legal_status.risk_level == LegalRisk.HIGH

    def test_second_upsert_keeps_asset_id(self, engine, records, complete_property):
        engine.upsert(complete_property, complete_property.asset_id)
        record = engine.upsert(complete_property, "MG-SOMETHING-ELSE")
        assert record.asset_id == complete_property.asset_id
        assert records.count() == 1

    def test_refresh_recomputes(self, engine, bare_property):
        engine.upsert(bare_property, bare_property.asset_id)
        bare_property.location.point = GeoPoint(77.59, 12.97)
        record = engine.upsert(bare_property, bare_property.asset_id)
        assert record.scores.verification_score == 50

    def test_refresh_copies_summary(self, engine, complete_property):
        engine.refresh(complete_property)
        assert complete_property.asset_dna.verification_score == 100
        assert complete_property.asset_dna.geo_verified is True
        assert complete_property.asset_dna.legal_risk == LegalRisk.LOW

    def test_missing_asset_id_rejected(self, engine, records, complete_property):
        with pytest.raises(InvalidInputError):
            engine.upsert(complete_property, "")
        assert records.count() == 0

    def test_concurrent_upserts_make_one_record(self, engine, records, complete_property):
        candidates = [f"MG-RACE-{i:08X}" for i in range(16)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(
                lambda asset_id: engine.upsert(complete_property, asset_id),
                candidates,
            ))

        assert records.count() == 1
        stored = records.get_by_property(complete_property.property_id)
        assert stored.asset_id in candidates
        assert {r.asset_id for r in results} == {stored.asset_id}


class TestUpsertRetry:
    """Transient write conflicts are retried."""

    def test_retries_then_succeeds(self, complete_property):
        repo = FlakyVerificationRepository(failures=2)
        engine = AssetVerificationEngine(repo, max_attempts=3)
        record = engine.upsert(complete_property, complete_property.asset_id)
        assert record.asset_id == complete_property.asset_id
        assert repo.calls == 3

    def test_gives_up_after_max_attempts(self, complete_property):
        repo = FlakyVerificationRepository(failures=5)
        engine = AssetVerificationEngine(repo, max_attempts=2)
        with pytest.raises(TransientWriteError):
            engine.upsert(complete_property, complete_property.asset_id)
        assert repo.calls == 2
