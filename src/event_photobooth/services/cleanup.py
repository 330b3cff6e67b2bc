"""Scheduled purge of expired galleries."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from event_photobooth.adapters.supabase_storage import ObjectStorage
from event_photobooth.domain.cleanup import CleanupErrorEntry, CleanupSummary
from event_photobooth.domain.events import CLEANED, EXPIRED, EventRecord
from event_photobooth.services.albums import album_path
from event_photobooth.services.captures import CaptureRepository
from event_photobooth.services.events import EventRepository, utcnow

logger = logging.getLogger(__name__)


class CleanupFailedError(RuntimeError):
    """Raised when a cleanup batch cannot run at all."""


class CleanupLogRepository(Protocol):
    """Persistence interface for cleanup audit rows."""

    def create_summary(self, summary: CleanupSummary) -> None:
        """Append a batch summary row."""

    def create_error(self, entry: CleanupErrorEntry) -> None:
        """Append an error row."""

    def list_summaries(self, limit: int) -> list[dict[str, object]]:
        """Return recent summary rows."""

    def list_errors(self, limit: int) -> list[dict[str, object]]:
        """Return recent error rows."""

    def prune(self, before: datetime) -> None:
        """Delete summary and error rows older than a cutoff."""


@dataclass
class CleanupService:
    """Deletes photos, archives and captures of galleries past their expiry."""

    event_repository: EventRepository
    capture_repository: CaptureRepository
    log_repository: CleanupLogRepository
    storage: ObjectStorage
    photos_bucket: str = "photos"
    zips_bucket: str = "zips"
    log_retention_days: int | None = None
    now: Callable[[], datetime] = utcnow

    def run(self) -> CleanupSummary:
        """Clean every expired gallery, isolating per-event failures."""
        now = self.now()
        logger.info("Starting gallery cleanup")
        try:
            summary = self._run_batch(now)
        except Exception as exc:
            logger.exception("Gallery cleanup failed")
            self._record_fatal(exc)
            raise CleanupFailedError("Cleanup failed") from exc
        logger.info(
            "Cleanup finished: processed=%s succeeded=%s failed=%s photos=%s zips=%s",
            summary.events_processed,
            summary.events_cleaned_success,
            summary.events_cleaned_failed,
            summary.total_photos_deleted,
            summary.total_zips_deleted,
        )
        return summary

    def list_summaries(self, limit: int = 30) -> list[dict[str, object]]:
        """Return recent cleanup summaries."""
        return self.log_repository.list_summaries(limit)

    def list_errors(self, limit: int = 50) -> list[dict[str, object]]:
        """Return recent cleanup errors."""
        return self.log_repository.list_errors(limit)

    def _run_batch(self, now: datetime) -> CleanupSummary:
        events = self.event_repository.list_expired_galleries(now)
        logger.info("Found %s expired galleries to clean", len(events))
        summary = CleanupSummary()
        for event in events:
            summary.events_processed += 1
            try:
                self._clean_event(event, summary)
            except Exception as exc:
                logger.exception("Failed to clean event %s", event.id)
                summary.events_cleaned_failed += 1
                self._record_error(
                    CleanupErrorEntry(
                        event_id=event.id, event_name=event.name, error=str(exc)
                    )
                )
                continue
            summary.events_cleaned_success += 1

        self.log_repository.create_summary(summary)
        if self.log_retention_days is not None:
            self.log_repository.prune(now - timedelta(days=self.log_retention_days))
        return summary

    def _clean_event(self, event: EventRecord, summary: CleanupSummary) -> None:
        photos = self.storage.list_objects(self.photos_bucket, str(event.id))
        if photos:
            summary.total_photos_deleted += self.storage.remove(
                self.photos_bucket, [photo.path for photo in photos]
            )

        zip_path = album_path(event.id)
        if self.storage.get_object(self.zips_bucket, zip_path) is not None:
            summary.total_zips_deleted += self.storage.remove(
                self.zips_bucket, [zip_path]
            )

        deleted = self.capture_repository.delete_for_event(event.id)
        self.event_repository.compare_and_update(
            event.id, expected={"status": EXPIRED}, changes={"status": CLEANED}
        )
        logger.info(
            "Cleaned event %s (%s): %s photos, %s capture rows",
            event.id,
            event.name,
            len(photos),
            deleted,
        )

    def _record_fatal(self, exc: Exception) -> None:
        self._record_error(
            CleanupErrorEntry(
                event_id=None, event_name=None, error=str(exc), fatal=True
            )
        )

    def _record_error(self, entry: CleanupErrorEntry) -> None:
        # Audit writes never abort the batch.
        try:
            self.log_repository.create_error(entry)
        except Exception:
            logger.exception("Failed to record cleanup error for %s", entry.event_id)
