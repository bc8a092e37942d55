"""
Lifecycle Events - Interface to the Notification Collaborator

The engine emits two kinds of message:
- OwnerNotification: private, addressed to the listing's owner
- LifecycleEvent: public broadcast (listing added, sold, rented)

Delivery is the dispatcher's concern. A dispatcher signals failure by
raising NotificationError; the lifecycle controller logs it and carries on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from core.listing.schema import Property, PropertyStatus, utc_now


class EventType(Enum):
    """Public broadcast event types."""

    PROPERTY_ADDED = "PROPERTY_ADDED"
    PROPERTY_SOLD = "PROPERTY_SOLD"
    PROPERTY_RENTED = "PROPERTY_RENTED"


class NotificationKind(Enum):
    """Owner notification types."""

    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAUSED = "PAUSED"
    RESUMED = "RESUMED"


class Severity(Enum):
    """How the client should style an owner notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LifecycleEvent:
    """Public lifecycle-change event."""

    property_id: str
    title: str
    category: str
    transaction_type: str
    event_type: EventType
    location: Optional[dict[str, str]] = None
    occurred_at: datetime = field(default_factory=utc_now)

    @classmethod
    def for_property(cls, prop: Property, event_type: EventType) -> "LifecycleEvent":
        return cls(
            property_id=prop.property_id,
            title=prop.title,
            category=prop.category.value,
            transaction_type=prop.transaction_type.value,
            event_type=event_type,
            location=prop.location.to_event_dict() if prop.location else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "property_id": self.property_id,
            "title": self.title,
            "category": self.category,
            "transaction_type": self.transaction_type,
            "location": self.location,
            "event_type": self.event_type.value,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class OwnerNotification:
    """Private notification to a listing's owner."""

    user_id: str
    property_id: str
    kind: NotificationKind
    title: str
    message: str
    severity: Severity = Severity.INFO
    link: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "property_id": self.property_id,
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "link": self.link,
        }


_OWNER_MESSAGES: dict[NotificationKind, tuple[str, str, Severity]] = {
    NotificationKind.UNDER_REVIEW: (
        "Property Under Review",
        'Your property "{title}" has been submitted for review.',
        Severity.INFO,
    ),
    NotificationKind.APPROVED: (
        "Property Live",
        'Your property "{title}" has been approved and is now live.',
        Severity.SUCCESS,
    ),
    NotificationKind.REJECTED: (
        "Property Rejected",
        'Your property "{title}" has been rejected.',
        Severity.ERROR,
    ),
    NotificationKind.PAUSED: (
        "Property Paused",
        'Your property "{title}" has been paused and is now hidden from public view.',
        Severity.WARNING,
    ),
    NotificationKind.RESUMED: (
        "Property Resumed",
        'Your property "{title}" has been resumed and is now visible to the public.',
        Severity.SUCCESS,
    ),
}


def owner_notification(
    prop: Property,
    kind: NotificationKind,
    reason: Optional[str] = None,
) -> OwnerNotification:
    """Build the owner notification for a lifecycle change."""
    title, template, severity = _OWNER_MESSAGES[kind]
    message = template.format(title=prop.title)
    if reason:
        message = f"{message} Reason: {reason}"
    return OwnerNotification(
        user_id=prop.listed_by,
        property_id=prop.property_id,
        kind=kind,
        title=title,
        message=message,
        severity=severity,
        link=f"/properties/{prop.property_id}",
    )


def closing_event_type(status: PropertyStatus) -> EventType:
    """Broadcast type for a SOLD or RENTED status."""
    if status == PropertyStatus.SOLD:
        return EventType.PROPERTY_SOLD
    return EventType.PROPERTY_RENTED


# =============================================================================
# Dispatchers
# =============================================================================


class NotificationDispatcher(ABC):
    """Delivery interface implemented by the notification service."""

    @abstractmethod
    def notify_owner(self, notification: OwnerNotification) -> None:
        """Deliver a private notification. Raises NotificationError on failure."""

    @abstractmethod
    def broadcast(self, event: LifecycleEvent) -> None:
        """Publish a public event. Raises NotificationError on failure."""


class InMemoryDispatcher(NotificationDispatcher):
    """Collects messages in lists; used in development and tests."""

    def __init__(self):
        self.notifications: list[OwnerNotification] = []
        self.events: list[LifecycleEvent] = []

    def notify_owner(self, notification: OwnerNotification) -> None:
        self.notifications.append(notification)

    def broadcast(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def clear(self) -> None:
        self.notifications.clear()
        self.events.clear()
