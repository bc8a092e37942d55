"""
Tests for owner notifications and public lifecycle events.
"""

import pytest

from core.integrity.events import (
    EventType,
    LifecycleEvent,
    NotificationKind,
    Severity,
    closing_event_type,
    owner_notification,
)
from core.listing import PropertyStatus


@pytest.fixture
def listing(make_property):
    prop = make_property(title="Sea View 2BHK")
    prop.property_id = "PROP-ABC123"
    return prop


class TestOwnerNotification:
    """Owner-facing notification content."""

    def test_approved(self, listing):
        notification = owner_notification(listing, NotificationKind.APPROVED)
        assert notification.user_id == "owner-1"
        assert notification.title == "Property Live"
        assert notification.message == 'Your property "Sea View 2BHK" has been approved and is now live.'
        assert notification.severity == Severity.SUCCESS
        assert notification.link == "/properties/PROP-ABC123"

    def test_rejection_reason_appended(self, listing):
        notification = owner_notification(listing, NotificationKind.REJECTED, reason="Duplicate photos")
        assert notification.message.endswith(" Reason: Duplicate photos")
        assert notification.severity == Severity.ERROR

    def test_paused_is_warning(self, listing):
        assert owner_notification(listing, NotificationKind.PAUSED).severity == Severity.WARNING

    def test_to_dict(self, listing):
        data = owner_notification(listing, NotificationKind.RESUMED).to_dict()
        assert data["kind"] == "RESUMED"
        assert data["property_id"] == "PROP-ABC123"


class TestLifecycleEvent:
    """Public broadcast payload."""

    def test_for_property(self, listing):
        event = LifecycleEvent.for_property(listing, EventType.PROPERTY_ADDED)
        data = event.to_dict()

        assert data["property_id"] == "PROP-ABC123"
        assert data["category"] == "RESIDENTIAL"
        assert data["transaction_type"] == "SELL"
        assert data["event_type"] == "PROPERTY_ADDED"
        assert data["location"] == {"city": "Bangalore", "area": "Indiranagar", "state": "Karnataka"}

    @pytest.mark.parametrize("status,expected", [
        (PropertyStatus.SOLD, EventType.PROPERTY_SOLD),
        (PropertyStatus.RENTED, EventType.PROPERTY_RENTED),
    ])
    def test_closing_event_type(self, status, expected):
        assert closing_event_type(status) == expected
