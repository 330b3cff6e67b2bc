"""Capture slot reservation with optimistic concurrency."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from event_photobooth.domain.events import (
    ACTIVE,
    EXPIRED,
    EventRecord,
    EventSnapshot,
)
from event_photobooth.domain.results import (
    CONFLICT,
    NOT_FOUND,
    PRECONDITION_FAILED,
    ReservationResult,
)
from event_photobooth.services.events import EventRepository, utcnow

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Concurrent update conflict, please retry"

_NOT_FOUND = ReservationResult(
    success=False, message="Event not found", code=NOT_FOUND
)


@dataclass
class ReservationService:
    """Claims capture slots by compare-and-swap on the event counters.

    Every successful write is conditioned on the counter values that were
    read, so a concurrent winner makes this caller's update match no rows.
    Conflicts are reported to the caller, never retried here.
    """

    repository: EventRepository
    gallery_grace_days: int = 15
    analytics_timezone: str = "UTC"
    now: Callable[[], datetime] = utcnow

    def reserve(self, event_id: UUID) -> ReservationResult:
        """Claim the next capture slot for an event."""
        now = self.now()
        event = self.repository.get_event(event_id)
        if event is None:
            return _NOT_FOUND
        rejection = self._check_capture_allowed(event, now, include_reserved=True)
        if rejection is not None:
            return rejection

        new_count = event.capture_count + 1
        changes: dict[str, object] = {
            "capture_count": new_count,
            "analytics": self._next_analytics(event, now),
        }
        status = event.status
        if new_count >= event.photo_limit:
            status = EXPIRED
            changes.update(self._expiry_changes(now))

        # The availability check reads both counters.
        if not self.repository.compare_and_update(
            event.id,
            expected={
                "capture_count": event.capture_count,
                "reserved_count": event.reserved_count,
            },
            changes=changes,
        ):
            logger.info("Reservation conflict on event %s", event.id)
            return ReservationResult(
                success=False, message=CONFLICT_MESSAGE, code=CONFLICT
            )

        if status == EXPIRED:
            logger.info("Event %s reached its photo limit", event.id)
        return ReservationResult(
            success=True,
            capture_number=new_count,
            event=EventSnapshot(
                capture_count=new_count,
                photo_limit=event.photo_limit,
                status=status,
            ),
        )

    def reserve_with_buffer(self, event_id: UUID) -> ReservationResult:
        """Hold a provisional slot that a later confirm turns into a capture."""
        now = self.now()
        event = self.repository.get_event(event_id)
        if event is None:
            return _NOT_FOUND
        rejection = self._check_capture_allowed(event, now, include_reserved=True)
        if rejection is not None:
            return rejection

        new_reserved = event.reserved_count + 1
        if not self.repository.compare_and_update(
            event.id,
            expected={
                "capture_count": event.capture_count,
                "reserved_count": event.reserved_count,
            },
            changes={"reserved_count": new_reserved},
        ):
            logger.info("Buffered reservation conflict on event %s", event.id)
            return ReservationResult(
                success=False, message=CONFLICT_MESSAGE, code=CONFLICT
            )

        return ReservationResult(
            success=True,
            capture_number=event.capture_count + new_reserved,
            event=EventSnapshot.of(event),
        )

    def confirm(self, event_id: UUID) -> ReservationResult:
        """Convert one reserved slot into a recorded capture."""
        now = self.now()
        event = self.repository.get_event(event_id)
        if event is None:
            return _NOT_FOUND
        rejection = self._check_capture_allowed(event, now, include_reserved=False)
        if rejection is not None:
            return rejection

        new_count = event.capture_count + 1
        changes: dict[str, object] = {
            "capture_count": new_count,
            "reserved_count": max(0, event.reserved_count - 1),
            "analytics": self._next_analytics(event, now),
        }
        status = event.status
        if new_count >= event.photo_limit:
            status = EXPIRED
            changes.update(self._expiry_changes(now))

        if not self.repository.compare_and_update(
            event.id,
            expected={
                "capture_count": event.capture_count,
                "reserved_count": event.reserved_count,
            },
            changes=changes,
        ):
            logger.info("Confirm conflict on event %s", event.id)
            return ReservationResult(
                success=False, message=CONFLICT_MESSAGE, code=CONFLICT
            )

        return ReservationResult(
            success=True,
            capture_number=new_count,
            event=EventSnapshot(
                capture_count=new_count,
                photo_limit=event.photo_limit,
                status=status,
            ),
        )

    def _check_capture_allowed(
        self, event: EventRecord, now: datetime, *, include_reserved: bool
    ) -> ReservationResult | None:
        if event.status != ACTIVE:
            return _rejected(event, "Event is not active")
        if now < event.start_date:
            return _rejected(event, "Event has not started yet")
        if now > event.end_date:
            self._expire_ended(event, now)
            return ReservationResult(
                success=False,
                message="Event has ended",
                code=PRECONDITION_FAILED,
                event=EventSnapshot(
                    capture_count=event.capture_count,
                    photo_limit=event.photo_limit,
                    status=EXPIRED,
                ),
            )
        if event.capture_count >= event.photo_limit:
            return _rejected(event, "Photo limit reached")
        if (
            include_reserved
            and event.capture_count + event.reserved_count >= event.photo_limit
        ):
            return _rejected(event, "No available slots (some are reserved)")
        return None

    def _expire_ended(self, event: EventRecord, now: datetime) -> None:
        # Guarded on the active status so a second caller never moves the
        # gallery expiry forward.
        if self.repository.compare_and_update(
            event.id,
            expected={"status": ACTIVE},
            changes=self._expiry_changes(now),
        ):
            logger.info("Event %s ended, gallery expiry set", event.id)

    def _expiry_changes(self, now: datetime) -> dict[str, object]:
        return {
            "status": EXPIRED,
            "gallery_expires_at": now + timedelta(days=self.gallery_grace_days),
        }

    def _next_analytics(self, event: EventRecord, now: datetime) -> dict[str, object]:
        analytics = dict(event.analytics)
        total = analytics.get("totalCaptures", 0)
        analytics["totalCaptures"] = (total if isinstance(total, int) else 0) + 1
        analytics["peakHour"] = now.astimezone(ZoneInfo(self.analytics_timezone)).hour
        analytics["lastCaptureAt"] = now.isoformat()
        return analytics


def _rejected(event: EventRecord, message: str) -> ReservationResult:
    return ReservationResult(
        success=False,
        message=message,
        code=PRECONDITION_FAILED,
        event=EventSnapshot.of(event),
    )
