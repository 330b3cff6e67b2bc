"""Event lifecycle operations initiated by operators and the camera page."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from event_photobooth.domain.events import (
    ACTIVE,
    DRAFT,
    EXPIRED,
    PLANS,
    EventRecord,
)
from event_photobooth.domain.results import (
    CONFLICT,
    NOT_FOUND,
    PRECONDITION_FAILED,
    EventResult,
)

logger = logging.getLogger(__name__)

_PUBLIC_STATUSES = {ACTIVE, EXPIRED}


def utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)


class EventRepository(Protocol):
    """Persistence interface for event rows."""

    def get_event(self, event_id: UUID) -> EventRecord | None:
        """Return an event by id, if present."""

    def get_event_by_slug(self, slug: str) -> EventRecord | None:
        """Return an event by slug, if present."""

    def list_events(self, limit: int) -> list[EventRecord]:
        """Return the most recently created events."""

    def create_event(self, payload: dict[str, object]) -> EventRecord:
        """Insert an event row and return it."""

    def compare_and_update(
        self,
        event_id: UUID,
        expected: dict[str, object],
        changes: dict[str, object],
    ) -> bool:
        """Apply changes only if the row still matches expected values.

        Returns False when no row matched, i.e. a concurrent writer won.
        """

    def list_expired_galleries(self, now: datetime) -> list[EventRecord]:
        """Return expired events whose gallery expiry is before now."""


@dataclass
class EventService:
    """Service for creating, activating and looking up events."""

    repository: EventRepository
    now: Callable[[], datetime] = utcnow

    def create_event(
        self, name: str, slug: str, plan: str, start_date: datetime
    ) -> EventResult:
        """Create a draft event with limits taken from its plan."""
        plan_config = PLANS.get(plan)
        if plan_config is None:
            return EventResult(
                success=False,
                message=f"Unknown plan: {plan}",
                code=PRECONDITION_FAILED,
            )
        if self.repository.get_event_by_slug(slug) is not None:
            return EventResult(
                success=False,
                message="Slug is already in use",
                code=CONFLICT,
            )
        event = self.repository.create_event(
            {
                "slug": slug,
                "name": name,
                "plan": plan_config.name,
                "photo_limit": plan_config.photo_limit,
                "validity_days": plan_config.validity_days,
                "has_cloud_album": plan_config.has_cloud_album,
                "start_date": start_date,
                "end_date": start_date + timedelta(days=plan_config.validity_days),
                "status": DRAFT,
                "capture_count": 0,
                "reserved_count": 0,
                "gallery_token": secrets.token_hex(16),
                "analytics": {"totalCaptures": 0},
            }
        )
        logger.info("Created event %s (%s) on plan %s", event.id, slug, plan)
        return EventResult(success=True, event=event)

    def activate(self, event_id: UUID) -> EventResult:
        """Move a draft event to active."""
        event = self.repository.get_event(event_id)
        if event is None:
            return EventResult(
                success=False, message="Event not found", code=NOT_FOUND
            )
        if event.status != DRAFT:
            return EventResult(
                success=False,
                event=event,
                message=f"Only draft events can be activated (status: {event.status})",
                code=PRECONDITION_FAILED,
            )
        deployed_at = self.now()
        if not self.repository.compare_and_update(
            event.id,
            expected={"status": DRAFT},
            changes={"status": ACTIVE, "deployed_at": deployed_at},
        ):
            return EventResult(
                success=False,
                message="Event changed concurrently, please retry",
                code=CONFLICT,
            )
        logger.info("Activated event %s", event.id)
        return EventResult(
            success=True, event=self.repository.get_event(event.id) or event
        )

    def get_public_event(self, slug: str) -> EventResult:
        """Return an event visible to attendees by slug."""
        event = self.repository.get_event_by_slug(slug)
        if event is None or event.status not in _PUBLIC_STATUSES:
            return EventResult(
                success=False, message="Event not found", code=NOT_FOUND
            )
        return EventResult(success=True, event=event)

    def list_events(self, limit: int = 50) -> list[EventRecord]:
        """Return recent events for operators."""
        return self.repository.list_events(limit)
