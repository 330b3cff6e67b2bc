"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from event_photobooth.adapters.photo_downloader import HttpxPhotoDownloader
from event_photobooth.adapters.supabase_capture_repository import (
    SupabaseCaptureRepository,
)
from event_photobooth.adapters.supabase_cleanup_repository import (
    SupabaseCleanupLogRepository,
)
from event_photobooth.adapters.supabase_event_repository import (
    SupabaseEventRepository,
)
from event_photobooth.adapters.supabase_storage import SupabaseObjectStorage
from event_photobooth.config import Settings
from event_photobooth.services.albums import AlbumService
from event_photobooth.services.captures import CaptureService
from event_photobooth.services.cleanup import CleanupService
from event_photobooth.services.events import EventService
from event_photobooth.services.reservations import ReservationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    event_service: EventService
    reservation_service: ReservationService
    capture_service: CaptureService
    album_service: AlbumService
    cleanup_service: CleanupService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    event_repository = SupabaseEventRepository(supabase_client)
    capture_repository = SupabaseCaptureRepository(supabase_client)
    cleanup_repository = SupabaseCleanupLogRepository(supabase_client)
    storage = SupabaseObjectStorage(supabase_client)
    downloader = HttpxPhotoDownloader.create()

    event_service = EventService(event_repository)
    reservation_service = ReservationService(
        repository=event_repository,
        gallery_grace_days=resolved_settings.gallery_grace_days,
        analytics_timezone=resolved_settings.analytics_timezone,
    )
    capture_service = CaptureService(
        event_repository=event_repository,
        repository=capture_repository,
        storage=storage,
        photos_bucket=resolved_settings.photos_bucket,
    )
    album_service = AlbumService(
        event_repository=event_repository,
        capture_repository=capture_repository,
        storage=storage,
        downloader=downloader,
        photos_bucket=resolved_settings.photos_bucket,
        zips_bucket=resolved_settings.zips_bucket,
        cache_ttl_hours=resolved_settings.zip_cache_ttl_hours,
        signed_url_ttl_seconds=resolved_settings.signed_url_ttl_seconds,
    )
    cleanup_service = CleanupService(
        event_repository=event_repository,
        capture_repository=capture_repository,
        log_repository=cleanup_repository,
        storage=storage,
        photos_bucket=resolved_settings.photos_bucket,
        zips_bucket=resolved_settings.zips_bucket,
        log_retention_days=resolved_settings.cleanup_log_retention_days,
    )

    async def close_resources() -> None:
        await downloader.close()

    return AppContainer(
        settings=resolved_settings,
        event_service=event_service,
        reservation_service=reservation_service,
        capture_service=capture_service,
        album_service=album_service,
        cleanup_service=cleanup_service,
        close_resources=close_resources,
    )
