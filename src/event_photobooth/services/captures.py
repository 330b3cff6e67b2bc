"""Capture recording and gallery listing."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from event_photobooth.adapters.supabase_storage import ObjectStorage
from event_photobooth.domain.captures import CaptureRecord
from event_photobooth.domain.events import CLEANED, DRAFT
from event_photobooth.domain.results import (
    CONFLICT,
    NOT_FOUND,
    PERMISSION_DENIED,
    PRECONDITION_FAILED,
    CaptureResult,
    GalleryResult,
)
from event_photobooth.services.events import EventRepository, utcnow

logger = logging.getLogger(__name__)

DUPLICATE_CAPTURE_MESSAGE = "Capture already recorded"


class DuplicateCaptureError(RuntimeError):
    """Raised when a capture number of an event is already stored."""


class CaptureRepository(Protocol):
    """Persistence interface for capture rows."""

    def create_capture(self, payload: dict[str, object]) -> CaptureRecord:
        """Insert a capture row and return it.

        Raises DuplicateCaptureError when the event already holds the number.
        """

    def find_by_number(
        self, event_id: UUID, capture_number: int
    ) -> CaptureRecord | None:
        """Return the capture holding a sequence number, if present."""

    def list_cloud_captures(self, event_id: UUID) -> list[CaptureRecord]:
        """Return cloud-uploaded captures ordered by capture number."""

    def mark_uploaded(
        self, capture_id: UUID, storage_path: str, storage_url: str | None
    ) -> CaptureRecord | None:
        """Flag a capture as uploaded and store its location."""

    def delete_for_event(self, event_id: UUID) -> int:
        """Delete every capture of an event and return the count."""


@dataclass
class CaptureService:
    """Service for persisting captures of reserved slots."""

    event_repository: EventRepository
    repository: CaptureRepository
    storage: ObjectStorage
    photos_bucket: str = "photos"
    now: Callable[[], datetime] = utcnow

    def record_capture(  # noqa: PLR0913
        self,
        event_id: UUID,
        capture_number: int,
        photo: bytes | None = None,
        *,
        device_saved: bool = False,
        original_size: int | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> CaptureResult:
        """Record the capture for a reserved slot, uploading it when allowed."""
        event = self.event_repository.get_event(event_id)
        if event is None:
            return CaptureResult(
                success=False, message="Event not found", code=NOT_FOUND
            )
        if event.status in {DRAFT, CLEANED}:
            return CaptureResult(
                success=False,
                message="Event does not accept captures",
                code=PRECONDITION_FAILED,
            )
        if not 1 <= capture_number <= event.capture_count + event.reserved_count:
            return CaptureResult(
                success=False,
                message="Capture number was not reserved",
                code=PRECONDITION_FAILED,
            )
        if self.repository.find_by_number(event.id, capture_number) is not None:
            return CaptureResult(
                success=False,
                message=DUPLICATE_CAPTURE_MESSAGE,
                code=CONFLICT,
            )

        timestamp = self.now()
        storage_path = None
        storage_url = None
        if photo is not None and event.has_cloud_album:
            millis = int(timestamp.timestamp() * 1000)
            storage_path = f"{event.id}/{capture_number}_{millis}.jpg"
            self.storage.upload(
                self.photos_bucket,
                storage_path,
                photo,
                content_type="image/jpeg",
                upsert=False,
            )
            storage_url = self.storage.get_public_url(self.photos_bucket, storage_path)

        try:
            capture = self.repository.create_capture(
                {
                    "event_id": event.id,
                    "capture_number": capture_number,
                    "timestamp": timestamp,
                    "storage_path": storage_path,
                    "storage_url": storage_url,
                    "device_saved": device_saved,
                    "uploaded_to_cloud": storage_path is not None,
                    "original_size": original_size,
                    "compressed_size": len(photo) if photo is not None else None,
                    "width": width,
                    "height": height,
                }
            )
        except DuplicateCaptureError:
            logger.info(
                "Capture %s of event %s recorded concurrently", capture_number, event.id
            )
            if storage_path is not None:
                self.storage.remove(self.photos_bucket, [storage_path])
            return CaptureResult(
                success=False, message=DUPLICATE_CAPTURE_MESSAGE, code=CONFLICT
            )
        logger.info("Recorded capture %s for event %s", capture_number, event.id)
        return CaptureResult(success=True, capture=capture)

    def mark_uploaded(
        self, capture_id: UUID, storage_path: str, storage_url: str | None = None
    ) -> CaptureResult:
        """Flag a capture as uploaded after a deferred cloud upload."""
        capture = self.repository.mark_uploaded(capture_id, storage_path, storage_url)
        if capture is None:
            return CaptureResult(
                success=False, message="Capture not found", code=NOT_FOUND
            )
        return CaptureResult(success=True, capture=capture)

    def list_gallery(self, event_id: UUID, gallery_token: str) -> GalleryResult:
        """Return the cloud photos of an event for gallery viewers."""
        event = self.event_repository.get_event(event_id)
        if event is None:
            return GalleryResult(
                success=False, message="Event not found", code=NOT_FOUND
            )
        if event.gallery_token != gallery_token:
            return GalleryResult(
                success=False,
                message="Invalid gallery token",
                code=PERMISSION_DENIED,
            )
        if event.status == CLEANED:
            return GalleryResult(
                success=False,
                message="Gallery has been archived",
                code=PRECONDITION_FAILED,
            )
        return GalleryResult(
            success=True, captures=self.repository.list_cloud_captures(event.id)
        )
