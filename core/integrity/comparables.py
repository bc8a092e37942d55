"""
Comparable Corpus Reader

Reads a bounded sample of previously accepted listings to use as market
comparables, and resolves each one to a (price, unit area) pair.

Unit area is a category-dependent proxy:
- commercial / industrial -> built-up area
- land -> plot area
- residential -> bhk x 1000
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from core.listing.repository import PropertyRepository
from core.listing.schema import (
    ListingAttempt,
    Property,
    PropertyCategory,
    PropertyStatus,
)

DEFAULT_SAMPLE_SIZE = 20


@dataclass(frozen=True)
class Comparable:
    """A comparable listing reduced to the numbers the statistics need."""

    property_id: str
    price: float
    unit_area: float

    @property
    def price_per_unit_area(self) -> float:
        return self.price / self.unit_area


def resolve_price(listing: Union[Property, ListingAttempt]) -> float:
    """Headline price, or 0 when none is set."""
    return listing.pricing.amount if listing.pricing else 0.0


def resolve_unit_area(listing: Union[Property, ListingAttempt]) -> float:
    """Category-dependent area proxy, or 0 when unresolvable."""
    if listing.details is None:
        return 0.0
    return listing.details.unit_area


class ComparableCorpusReader:
    """Reads recent APPROVED listings in the same city and category."""

    def __init__(
        self,
        properties: PropertyRepository,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ):
        self._properties = properties
        self._sample_size = sample_size

    def sample(self, city: str, category: PropertyCategory) -> list[Property]:
        """Up to sample_size newest approved listings."""
        return self._properties.find_recent(
            city=city,
            category=category,
            status=PropertyStatus.APPROVED,
            limit=self._sample_size,
        )

    def comparables(self, city: str, category: PropertyCategory) -> list[Comparable]:
        """Sampled listings that have both a positive price and a positive area."""
        result = []
        for prop in self.sample(city, category):
            comparable = self._to_comparable(prop)
            if comparable is not None:
                result.append(comparable)
        return result

    @staticmethod
    def _to_comparable(prop: Property) -> Optional[Comparable]:
        price = resolve_price(prop)
        area = resolve_unit_area(prop)
        if price <= 0 or area <= 0:
            return None
        return Comparable(property_id=prop.property_id, price=price, unit_area=area)
