"""
Listing Lifecycle Controller - Property Status State Machine

    DRAFT --submit--> APPROVED            (PENDING when auto-approve is off)
    PENDING --approve--> APPROVED
    PENDING --reject--> REJECTED          (terminal)
    APPROVED --pause--> PAUSED --resume--> APPROVED
    APPROVED / PENDING / PAUSED --update status--> SOLD | RENTED   (terminal)

Authorization is asymmetric:
- submit, pause, resume: owner only (an admin cannot pause someone else's listing)
- approve, reject: admin only
- generic update: owner or admin
- delete: owner only

No transition leaves REJECTED, SOLD or RENTED. Whether relisting should
exist is an open product question; until it is answered they stay terminal.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Final, Optional, Union

from core.errors import (
    AuthorizationError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    NotificationError,
)
from core.integrity.asset_dna import AssetVerificationEngine
from core.integrity.events import (
    EventType,
    LifecycleEvent,
    NotificationDispatcher,
    NotificationKind,
    closing_event_type,
    owner_notification,
)
from core.listing.repository import (
    PropertyQuery,
    PropertyRepository,
    VerificationRepository,
)
from core.listing.schema import (
    OWNER_STATUSES,
    PUBLIC_STATUSES,
    TERMINAL_STATUSES,
    Actor,
    Property,
    PropertyStatus,
    utc_now,
)

logger = logging.getLogger(__name__)


class LifecycleAction(Enum):
    """Named lifecycle transitions."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    PAUSE = "pause"
    RESUME = "resume"


# Statuses a generic update may close a listing from
CLOSABLE_STATUSES: Final[frozenset[PropertyStatus]] = frozenset({
    PropertyStatus.APPROVED,
    PropertyStatus.PENDING,
    PropertyStatus.PAUSED,
})

CLOSING_STATUSES: Final[frozenset[PropertyStatus]] = frozenset({
    PropertyStatus.SOLD,
    PropertyStatus.RENTED,
})

# Payload keys a generic update may replace
UPDATABLE_FIELDS: Final[tuple[str, ...]] = (
    "title",
    "description",
    "sub_type",
    "category",
    "transaction_type",
    "residential",
    "commercial",
    "land",
    "location",
    "pricing",
    "media",
    "legal",
)

# Update keys that may not be cleared with an explicit null
REQUIRED_FIELDS: Final[frozenset[str]] = frozenset({"title", "category", "transaction_type"})

# Changes to these refresh the verification record
VERIFICATION_INPUTS: Final[frozenset[str]] = frozenset({"location", "legal"})

DEFAULT_MIN_SUBMIT_IMAGES: Final[int] = 3
MAX_PAGE_SIZE: Final[int] = 100


def _require_owner(prop: Property, actor: Actor, action: str) -> None:
    if not prop.is_owned_by(actor.user_id):
        raise AuthorizationError(f"Only the owner can {action} this property")


def _require_admin(actor: Actor, action: str) -> None:
    if not actor.is_admin:
        raise AuthorizationError(f"Only an administrator can {action} a property")


def _require_status(prop: Property, expected: PropertyStatus, action: str) -> None:
    if prop.status != expected:
        raise InvalidTransitionError(
            f"Cannot {action}: property is {prop.status.value}, expected {expected.value}",
            current_status=prop.status.value,
        )


class LifecycleController:
    """
    Applies guarded status changes and emits their side effects.

    Usage:
        controller = LifecycleController(properties, records, engine, dispatcher)
        prop = controller.transition(prop, "submit", owner)
    """

    def __init__(
        self,
        properties: PropertyRepository,
        records: VerificationRepository,
        asset_engine: AssetVerificationEngine,
        dispatcher: NotificationDispatcher,
        min_submit_images: int = DEFAULT_MIN_SUBMIT_IMAGES,
        auto_approve_on_submit: bool = True,
        clock: Callable = utc_now,
    ):
        self._properties = properties
        self._records = records
        self._asset_engine = asset_engine
        self._dispatcher = dispatcher
        self._min_submit_images = min_submit_images
        self._auto_approve = auto_approve_on_submit
        self._clock = clock

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(
        self,
        prop: Property,
        action: Union[LifecycleAction, str],
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Property:
        """
        Apply a named transition and persist the result.

        Raises:
            AuthorizationError: Actor may not perform the action
            InvalidTransitionError: Property is in the wrong status
            InvalidInputError: Unknown action, or submit with too few images
        """
        if not isinstance(action, LifecycleAction):
            try:
                action = LifecycleAction(str(action).lower())
            except ValueError:
                raise InvalidInputError(f"Unknown lifecycle action: {action!r}")

        handler = {
            LifecycleAction.SUBMIT: self._submit,
            LifecycleAction.APPROVE: self._approve,
            LifecycleAction.REJECT: self._reject,
            LifecycleAction.PAUSE: self._pause,
            LifecycleAction.RESUME: self._resume,
        }[action]

        updated = prop.copy()
        notification_reason = handler(updated, actor, reason)
        saved = self._properties.save(updated)

        logger.info(
            "Property %s: %s -> %s by %s (%s)",
            saved.property_id, prop.status.value, saved.status.value,
            actor.user_id, action.value,
        )

        self._after_transition(saved, action, notification_reason)
        return saved

    def _submit(self, prop: Property, actor: Actor, reason: Optional[str]) -> None:
        _require_owner(prop, actor, "submit")
        _require_status(prop, PropertyStatus.DRAFT, "submit")
        if len(prop.media.images) < self._min_submit_images:
            raise InvalidInputError(
                f"At least {self._min_submit_images} images are required before submission"
            )

        if self._auto_approve:
            prop.status = PropertyStatus.APPROVED
            prop.is_verified = True
            prop.published_at = self._clock()
        else:
            prop.status = PropertyStatus.PENDING

    def _approve(self, prop: Property, actor: Actor, reason: Optional[str]) -> None:
        _require_admin(actor, "approve")
        _require_status(prop, PropertyStatus.PENDING, "approve")
        prop.status = PropertyStatus.APPROVED
        prop.is_verified = True
        if prop.published_at is None:
            prop.published_at = self._clock()

    def _reject(self, prop: Property, actor: Actor, reason: Optional[str]) -> Optional[str]:
        _require_admin(actor, "reject")
        _require_status(prop, PropertyStatus.PENDING, "reject")
        prop.status = PropertyStatus.REJECTED
        return reason

    def _pause(self, prop: Property, actor: Actor, reason: Optional[str]) -> None:
        _require_owner(prop, actor, "pause")
        _require_status(prop, PropertyStatus.APPROVED, "pause")
        prop.status = PropertyStatus.PAUSED

    def _resume(self, prop: Property, actor: Actor, reason: Optional[str]) -> None:
        _require_owner(prop, actor, "resume")
        _require_status(prop, PropertyStatus.PAUSED, "resume")
        prop.status = PropertyStatus.APPROVED

    def _after_transition(
        self,
        prop: Property,
        action: LifecycleAction,
        reason: Optional[str],
    ) -> None:
        if action == LifecycleAction.SUBMIT and prop.status == PropertyStatus.PENDING:
            self._notify_owner(prop, NotificationKind.UNDER_REVIEW)
            return

        kind = {
            LifecycleAction.SUBMIT: NotificationKind.APPROVED,
            LifecycleAction.APPROVE: NotificationKind.APPROVED,
            LifecycleAction.REJECT: NotificationKind.REJECTED,
            LifecycleAction.PAUSE: NotificationKind.PAUSED,
            LifecycleAction.RESUME: NotificationKind.RESUMED,
        }[action]
        self._notify_owner(prop, kind, reason)

        if action == LifecycleAction.SUBMIT:
            self._broadcast(prop, EventType.PROPERTY_ADDED)

    # =========================================================================
    # Generic update
    # =========================================================================

    def update(self, property_id: str, changes: dict[str, Any], actor: Actor) -> Property:
        """
        Replace listing fields (owner or admin).

        The asset ID can never change. A status change is accepted only to
        SOLD or RENTED from an open status. Location or legal changes
        refresh the verification record.

        Raises:
            NotFoundError, AuthorizationError, InvalidTransitionError, InvalidInputError
        """
        prop = self.get(property_id)
        if not prop.is_owned_by(actor.user_id) and not actor.is_admin:
            raise AuthorizationError("Not authorized to update this property")

        cleared = sorted(key for key in REQUIRED_FIELDS if key in changes and changes[key] is None)
        if cleared:
            raise InvalidInputError(f"Cannot clear required fields: {', '.join(cleared)}")

        new_status = self._requested_status(prop, changes.get("status"))

        merged = prop.to_dict()
        for key in UPDATABLE_FIELDS:
            if key in changes:
                merged[key] = changes[key]
        try:
            updated = Property.from_dict(merged)
        except InvalidInputError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid update: {e}") from e

        if new_status is not None:
            updated.status = new_status

        if VERIFICATION_INPUTS & set(changes):
            self._asset_engine.refresh(updated)

        saved = self._properties.save(updated)

        if new_status is not None:
            logger.info(
                "Property %s closed as %s by %s",
                saved.property_id, new_status.value, actor.user_id,
            )
            self._broadcast(saved, closing_event_type(new_status))

        return saved

    @staticmethod
    def _requested_status(prop: Property, raw_status: Any) -> Optional[PropertyStatus]:
        if raw_status is None or raw_status == "":
            return None
        try:
            status = PropertyStatus(str(raw_status).upper())
        except ValueError:
            raise InvalidInputError(f"Invalid status: {raw_status!r}")

        if status == prop.status:
            return None
        if prop.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"{prop.status.value} is final and cannot change",
                current_status=prop.status.value,
            )
        if status not in CLOSING_STATUSES:
            raise InvalidTransitionError(
                f"Status can only be changed to SOLD or RENTED by update, not {status.value}",
                current_status=prop.status.value,
            )
        if prop.status not in CLOSABLE_STATUSES:
            raise InvalidTransitionError(
                f"Cannot mark a {prop.status.value} property as {status.value}",
                current_status=prop.status.value,
            )
        return status

    # =========================================================================
    # Delete and read
    # =========================================================================

    def delete(self, property_id: str, actor: Actor) -> None:
        """Permanently remove a property and its verification record (owner only)."""
        prop = self.get(property_id)
        _require_owner(prop, actor, "delete")

        self._properties.delete(property_id)
        self._records.delete_by_property(property_id)
        logger.info("Property %s deleted by %s", property_id, actor.user_id)

    def get(self, property_id: str) -> Property:
        """Raises NotFoundError if absent."""
        prop = self._properties.get(property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop

    def record_view(self, property_id: str) -> Property:
        """Count a detail view and return the property. Raises NotFoundError if absent."""
        prop = self._properties.increment_counter(property_id, "views")
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop

    def list_properties(
        self,
        status: Optional[PropertyStatus] = None,
        listed_by: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        **filters: Any,
    ) -> tuple[list[Property], int]:
        """
        Paginated listing query, newest first.

        Default visibility hides PAUSED listings; an owner's own view
        (listed_by set) includes them. An explicit status overrides both.
        """
        if status is not None:
            statuses = frozenset({status})
        elif listed_by is not None:
            statuses = OWNER_STATUSES
        else:
            statuses = PUBLIC_STATUSES

        page = max(1, page)
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        query = PropertyQuery(statuses=statuses, listed_by=listed_by, **filters)
        return self._properties.query(query, offset=(page - 1) * limit, limit=limit)

    # =========================================================================
    # Side effects
    # =========================================================================

    def _notify_owner(
        self,
        prop: Property,
        kind: NotificationKind,
        reason: Optional[str] = None,
    ) -> None:
        try:
            self._dispatcher.notify_owner(owner_notification(prop, kind, reason))
        except NotificationError as e:
            logger.warning(
                "Owner notification %s for %s failed: %s", kind.value, prop.property_id, e
            )

    def _broadcast(self, prop: Property, event_type: EventType) -> None:
        try:
            self._dispatcher.broadcast(LifecycleEvent.for_property(prop, event_type))
        except NotificationError as e:
            logger.warning(
                "Broadcast %s for %s failed: %s", event_type.value, prop.property_id, e
            )
