"""
Listing Repositories - Document Store for Properties and Verification Records

Stand-ins for a document store with geospatial query support.
Both implementations are in-memory with optional JSON file persistence.
Production should back the abstract interfaces with a real database.

Guarantees the engine relies on:
- Unique keys: property_id and asset_id on properties; property_id and
  asset_id on verification records
- A sparse spatial index: properties without a point never match find_near
- VerificationRepository.upsert is a single conditional write
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from core.errors import DuplicateKeyError, InvalidInputError, NotFoundError
from core.listing.schema import (
    GeoPoint,
    Property,
    PropertyCategory,
    PropertyStatus,
    TransactionType,
    utc_now,
)
from core.listing.verification import VerificationRecord

logger = logging.getLogger(__name__)

ENGAGEMENT_COUNTERS = frozenset({"views", "saves", "inquiries"})


# =============================================================================
# Query
# =============================================================================


@dataclass(frozen=True)
class PropertyQuery:
    """Filters for listing queries. None means "no filter"."""

    statuses: Optional[frozenset[PropertyStatus]] = None
    listed_by: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    category: Optional[PropertyCategory] = None
    transaction_type: Optional[TransactionType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    def matches(self, prop: Property) -> bool:
        """Check a property against every filter."""
        if self.statuses is not None and prop.status not in self.statuses:
            return False
        if self.listed_by is not None and prop.listed_by != self.listed_by:
            return False
        # City and state match as case-insensitive substrings
        if self.city and self.city.lower() not in prop.location.city.lower():
            return False
        if self.state and self.state.lower() not in prop.location.state.lower():
            return False
        if self.category is not None and prop.category != self.category:
            return False
        if self.transaction_type is not None and prop.transaction_type != self.transaction_type:
            return False
        if self.min_price is not None or self.max_price is not None:
            price = _listed_price(prop)
            if price is None:
                return False
            if self.min_price is not None and price < self.min_price:
                return False
            if self.max_price is not None and price > self.max_price:
                return False
        return True


def _listed_price(prop: Property) -> Optional[float]:
    """Sale price or rent, whichever is set (price filters ignore lease value)."""
    if prop.pricing is None:
        return None
    if prop.pricing.expected_price is not None:
        return prop.pricing.expected_price
    return prop.pricing.rent_amount


# =============================================================================
# Interfaces
# =============================================================================


class PropertyRepository(ABC):
    """Storage interface for properties."""

    @abstractmethod
    def add(self, prop: Property) -> Property:
        """Insert a new property. Raises DuplicateKeyError on a unique key clash."""

    @abstractmethod
    def save(self, prop: Property) -> Property:
        """Replace a stored property. Raises NotFoundError if absent."""

    @abstractmethod
    def get(self, property_id: str) -> Optional[Property]:
        """Get a property by ID."""

    @abstractmethod
    def delete(self, property_id: str) -> bool:
        """Delete a property. Returns False if it did not exist."""

    @abstractmethod
    def increment_counter(self, property_id: str, counter: str, amount: int = 1) -> Optional[Property]:
        """
        Atomically add to an engagement counter (views, saves, inquiries).

        Returns the updated property, or None if it does not exist.
        """

    @abstractmethod
    def find_near(
        self,
        point: GeoPoint,
        max_distance_meters: float,
        statuses: Iterable[PropertyStatus],
        exclude_owner: Optional[str] = None,
        exclude_property_id: Optional[str] = None,
        limit: int = 5,
    ) -> list[Property]:
        """Properties within a radius, nearest first."""

    @abstractmethod
    def find_recent(
        self,
        city: str,
        category: PropertyCategory,
        status: PropertyStatus,
        limit: int,
    ) -> list[Property]:
        """Most recently created properties in a city and category."""

    @abstractmethod
    def count_created_since(self, listed_by: str, since: datetime) -> int:
        """Number of properties a user created at or after `since`."""

    @abstractmethod
    def query(
        self,
        query: PropertyQuery,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Property], int]:
        """Filtered page of properties (newest first) and the total match count."""


class VerificationRepository(ABC):
    """Storage interface for verification records."""

    @abstractmethod
    def upsert(
        self,
        property_id: str,
        set_on_insert: dict[str, Any],
        fields: dict[str, Any],
    ) -> VerificationRecord:
        """
        Insert-if-absent keyed by property_id.

        set_on_insert is applied only when the record is created.
        fields are applied on both insert and update.
        """

    @abstractmethod
    def get_by_property(self, property_id: str) -> Optional[VerificationRecord]:
        """Get the record for a property."""

    @abstractmethod
    def get_by_asset(self, asset_id: str) -> Optional[VerificationRecord]:
        """Get a record by asset ID."""

    @abstractmethod
    def delete_by_property(self, property_id: str) -> bool:
        """Delete the record for a property."""


# =============================================================================
# JSON persistence
# =============================================================================


class _JsonPersistence:
    """Optional whole-file JSON persistence shared by the in-memory stores."""

    def __init__(self, persist_path: Optional[str], collection: str):
        self._persist_path = Path(persist_path) if persist_path else None
        self._collection = collection

    def load(self) -> dict[str, dict]:
        if not self._persist_path or not self._persist_path.exists():
            return {}
        try:
            data = json.loads(self._persist_path.read_text())
            return data.get(self._collection, {})
        except (json.JSONDecodeError, ValueError) as e:
            # Start fresh rather than refuse to boot
            logger.warning("Could not load %s from %s: %s", self._collection, self._persist_path, e)
            return {}

    def save(self, documents: dict[str, dict]) -> None:
        if not self._persist_path:
            return
        data = {
            self._collection: documents,
            "saved_at": utc_now().isoformat(),
        }
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))


# =============================================================================
# In-memory Property Repository
# =============================================================================


class InMemoryPropertyRepository(PropertyRepository):
    """
    Property storage backed by a dict.

    Stored and returned objects are deep copies, so callers never share
    state with the store.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise repository.

        Args:
            persist_path: Optional path to persist data to JSON file
        """
        self._lock = threading.RLock()
        self._properties: dict[str, Property] = {}
        self._asset_index: dict[str, str] = {}  # asset_id -> property_id
        self._persistence = _JsonPersistence(persist_path, "properties")

        for pid, doc in self._persistence.load().items():
            try:
                prop = Property.from_dict(doc)
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unreadable property %s: %s", pid, e)
                continue
            self._properties[pid] = prop
            self._asset_index[prop.asset_id] = pid

    def _save_to_file(self) -> None:
        self._persistence.save({pid: p.to_dict() for pid, p in self._properties.items()})

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def add(self, prop: Property) -> Property:
        with self._lock:
            if prop.property_id in self._properties:
                raise DuplicateKeyError("property_id", prop.property_id)
            if prop.asset_id in self._asset_index:
                raise DuplicateKeyError("asset_id", prop.asset_id)

            self._properties[prop.property_id] = copy.deepcopy(prop)
            self._asset_index[prop.asset_id] = prop.property_id
            self._save_to_file()
            return copy.deepcopy(prop)

    def save(self, prop: Property) -> Property:
        with self._lock:
            existing = self._properties.get(prop.property_id)
            if existing is None:
                raise NotFoundError(f"Property {prop.property_id} not found")
            if existing.asset_id != prop.asset_id:
                raise InvalidInputError("asset_id is immutable")

            stored = copy.deepcopy(prop)
            stored.updated_at = utc_now()
            self._properties[prop.property_id] = stored
            self._save_to_file()
            return copy.deepcopy(stored)

    def get(self, property_id: str) -> Optional[Property]:
        with self._lock:
            prop = self._properties.get(property_id)
            return copy.deepcopy(prop) if prop else None

    def delete(self, property_id: str) -> bool:
        with self._lock:
            prop = self._properties.pop(property_id, None)
            if prop is None:
                return False
            self._asset_index.pop(prop.asset_id, None)
            self._save_to_file()
            return True

    def increment_counter(self, property_id: str, counter: str, amount: int = 1) -> Optional[Property]:
        if counter not in ENGAGEMENT_COUNTERS:
            raise InvalidInputError(f"Unknown counter: {counter!r}")
        with self._lock:
            prop = self._properties.get(property_id)
            if prop is None:
                return None
            # Engagement is not an edit: updated_at stays put
            setattr(prop, counter, getattr(prop, counter) + amount)
            self._save_to_file()
            return copy.deepcopy(prop)

    # =========================================================================
    # Query Operations
    # =========================================================================

    def find_near(
        self,
        point: GeoPoint,
        max_distance_meters: float,
        statuses: Iterable[PropertyStatus],
        exclude_owner: Optional[str] = None,
        exclude_property_id: Optional[str] = None,
        limit: int = 5,
    ) -> list[Property]:
        allowed = frozenset(statuses)
        with self._lock:
            hits = []
            for prop in self._properties.values():
                # Sparse index: no point, no entry
                if not prop.location.has_point:
                    continue
                if prop.status not in allowed:
                    continue
                if exclude_owner is not None and prop.listed_by == exclude_owner:
                    continue
                if prop.property_id == exclude_property_id:
                    continue
                distance = point.distance_to(prop.location.point)
                if distance <= max_distance_meters:
                    hits.append((distance, prop))

            hits.sort(key=lambda hit: hit[0])
            return [copy.deepcopy(prop) for _, prop in hits[:limit]]

    def find_recent(
        self,
        city: str,
        category: PropertyCategory,
        status: PropertyStatus,
        limit: int,
    ) -> list[Property]:
        with self._lock:
            matches = [
                p for p in self._properties.values()
                if p.location.city == city
                and p.category == category
                and p.status == status
            ]
            matches.sort(key=lambda p: p.created_at, reverse=True)
            return [copy.deepcopy(p) for p in matches[:limit]]

    def count_created_since(self, listed_by: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1 for p in self._properties.values()
                if p.listed_by == listed_by and p.created_at >= since
            )

    def query(
        self,
        query: PropertyQuery,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Property], int]:
        with self._lock:
            matches = [p for p in self._properties.values() if query.matches(p)]
            matches.sort(key=lambda p: p.created_at, reverse=True)
            page = matches[offset:offset + limit]
            return [copy.deepcopy(p) for p in page], len(matches)

    def count(self) -> int:
        """Get total number of properties."""
        return len(self._properties)


# =============================================================================
# In-memory Verification Repository
# =============================================================================


class InMemoryVerificationRepository(VerificationRepository):
    """Verification record storage backed by a dict keyed by property_id."""

    def __init__(self, persist_path: Optional[str] = None):
        self._lock = threading.Lock()
        self._records: dict[str, VerificationRecord] = {}
        self._asset_index: dict[str, str] = {}  # asset_id -> property_id
        self._persistence = _JsonPersistence(persist_path, "verification_records")

        for pid, doc in self._persistence.load().items():
            try:
                record = VerificationRecord.from_dict(doc)
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unreadable verification record %s: %s", pid, e)
                continue
            self._records[pid] = record
            self._asset_index[record.asset_id] = pid

    def _save_to_file(self) -> None:
        self._persistence.save({pid: r.to_dict() for pid, r in self._records.items()})

    def upsert(
        self,
        property_id: str,
        set_on_insert: dict[str, Any],
        fields: dict[str, Any],
    ) -> VerificationRecord:
        unknown = set(fields) - set(VerificationRecord.DERIVED_FIELDS)
        if unknown:
            raise InvalidInputError(f"Not derived fields: {sorted(unknown)}")

        with self._lock:
            now = utc_now()
            existing = self._records.get(property_id)

            if existing is None:
                asset_id = set_on_insert.get("asset_id")
                if not asset_id:
                    raise InvalidInputError("asset_id is required on insert")
                if asset_id in self._asset_index:
                    raise DuplicateKeyError("asset_id", asset_id)

                record = VerificationRecord(
                    asset_id=asset_id,
                    property_id=property_id,
                    created_at=now,
                    updated_at=now,
                    **fields,
                )
                self._asset_index[asset_id] = property_id
            else:
                record = replace(existing, updated_at=now, **fields)

            self._records[property_id] = record
            self._save_to_file()
            return copy.deepcopy(record)

    def get_by_property(self, property_id: str) -> Optional[VerificationRecord]:
        with self._lock:
            record = self._records.get(property_id)
            return copy.deepcopy(record) if record else None

    def get_by_asset(self, asset_id: str) -> Optional[VerificationRecord]:
        with self._lock:
            property_id = self._asset_index.get(asset_id)
            if property_id is None:
                return None
            return copy.deepcopy(self._records[property_id])

    def delete_by_property(self, property_id: str) -> bool:
        with self._lock:
            record = self._records.pop(property_id, None)
            if record is None:
                return False
            self._asset_index.pop(record.asset_id, None)
            self._save_to_file()
            return True

    def count(self) -> int:
        """Get total number of records."""
        return len(self._records)
