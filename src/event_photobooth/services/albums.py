"""Album archive generation for cloud galleries."""

import io
import logging
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from event_photobooth.adapters.photo_downloader import PhotoDownloader
from event_photobooth.adapters.supabase_storage import ObjectStorage
from event_photobooth.domain.captures import CaptureRecord
from event_photobooth.domain.events import CLEANED
from event_photobooth.domain.results import (
    NOT_FOUND,
    PERMISSION_DENIED,
    PRECONDITION_FAILED,
    AlbumResult,
)
from event_photobooth.services.captures import CaptureRepository
from event_photobooth.services.events import EventRepository, utcnow

logger = logging.getLogger(__name__)

ALBUM_FILENAME = "album.zip"


def album_path(event_id: UUID) -> str:
    """Return the storage path of an event's cached archive."""
    return f"{event_id}/{ALBUM_FILENAME}"


@dataclass
class AlbumService:
    """Builds, caches and signs ZIP archives of an event's cloud photos.

    The cache is purely age based: an archive younger than the cache TTL is
    served as-is even if photos were uploaded after it was built.
    """

    event_repository: EventRepository
    capture_repository: CaptureRepository
    storage: ObjectStorage
    downloader: PhotoDownloader
    photos_bucket: str = "photos"
    zips_bucket: str = "zips"
    cache_ttl_hours: int = 24
    signed_url_ttl_seconds: int = 86400
    compression_level: int = 6
    now: Callable[[], datetime] = utcnow

    async def generate(self, event_id: UUID, gallery_token: str) -> AlbumResult:
        """Return a signed download URL for the event's photo archive."""
        event = self.event_repository.get_event(event_id)
        if event is None:
            return AlbumResult(
                success=False, message="Event not found", code=NOT_FOUND
            )
        if event.gallery_token != gallery_token:
            return AlbumResult(
                success=False,
                message="Invalid gallery token",
                code=PERMISSION_DENIED,
            )
        if not event.has_cloud_album:
            return AlbumResult(
                success=False,
                message="This event does not have the cloud album feature",
                code=PRECONDITION_FAILED,
            )
        if event.status == CLEANED:
            return AlbumResult(
                success=False,
                message="Gallery has been archived",
                code=PRECONDITION_FAILED,
            )
        now = self.now()
        if event.gallery_expires_at is not None and now > event.gallery_expires_at:
            return AlbumResult(
                success=False,
                message="Gallery has expired",
                code=PRECONDITION_FAILED,
            )

        zip_path = album_path(event.id)
        cached = self.storage.get_object(self.zips_bucket, zip_path)
        if (
            cached is not None
            and cached.updated_at is not None
            and now - cached.updated_at < timedelta(hours=self.cache_ttl_hours)
        ):
            return self._signed(zip_path, now, "Using cached ZIP")

        captures = self.capture_repository.list_cloud_captures(event.id)
        if not captures:
            return AlbumResult(
                success=False,
                message="No photos found in cloud album",
                code=NOT_FOUND,
            )

        archive, photo_count = await self._build_archive(captures)
        if photo_count == 0:
            return AlbumResult(
                success=False,
                message="No accessible photos found",
                code=NOT_FOUND,
            )

        self.storage.upload(
            self.zips_bucket,
            zip_path,
            archive,
            content_type="application/zip",
            upsert=True,
        )
        logger.info("Built album for event %s with %s photos", event.id, photo_count)
        return self._signed(zip_path, now, f"ZIP created with {photo_count} photos")

    async def _build_archive(self, captures: list[CaptureRecord]) -> tuple[bytes, int]:
        buffer = io.BytesIO()
        photo_count = 0
        with zipfile.ZipFile(
            buffer,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
        ) as archive:
            for capture in captures:
                try:
                    data = await self._fetch_photo(capture)
                except Exception:
                    logger.exception(
                        "Skipping photo %s of event %s",
                        capture.capture_number,
                        capture.event_id,
                    )
                    continue
                if data is None:
                    continue
                archive.writestr(f"photo_{capture.capture_number:04d}.jpg", data)
                photo_count += 1
        return buffer.getvalue(), photo_count

    async def _fetch_photo(self, capture: CaptureRecord) -> bytes | None:
        if capture.storage_path:
            return self.storage.download(self.photos_bucket, capture.storage_path)
        if capture.storage_url:
            return await self.downloader.download(capture.storage_url)
        return None

    def _signed(self, zip_path: str, now: datetime, message: str) -> AlbumResult:
        url = self.storage.create_signed_url(
            self.zips_bucket, zip_path, self.signed_url_ttl_seconds
        )
        return AlbumResult(
            success=True,
            download_url=url,
            expires_at=now + timedelta(seconds=self.signed_url_ttl_seconds),
            message=message,
        )
