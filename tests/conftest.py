"""Shared test fixtures."""

from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from event_photobooth.adapters.supabase_storage import ObjectStorage, StoredObject
from event_photobooth.config import Settings
from event_photobooth.containers import AppContainer
from event_photobooth.domain.captures import CaptureRecord
from event_photobooth.domain.cleanup import CleanupErrorEntry, CleanupSummary
from event_photobooth.domain.events import ACTIVE, EventRecord
from event_photobooth.services.albums import AlbumService
from event_photobooth.services.captures import (
    CaptureRepository,
    CaptureService,
    DuplicateCaptureError,
)
from event_photobooth.services.cleanup import CleanupLogRepository, CleanupService
from event_photobooth.services.events import EventRepository, EventService
from event_photobooth.services.reservations import ReservationService

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


@dataclass
class FrozenClock:
    """Clock returning a fixed, adjustable instant."""

    current: datetime = NOW

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


def make_event(**overrides: object) -> EventRecord:
    """Build an active event that is open at NOW."""
    values: dict[str, object] = {
        "id": uuid4(),
        "slug": "summer-party",
        "name": "Summer Party",
        "plan": "pro",
        "photo_limit": 10,
        "validity_days": 14,
        "has_cloud_album": True,
        "start_date": NOW - timedelta(days=1),
        "end_date": NOW + timedelta(days=1),
        "status": ACTIVE,
        "capture_count": 0,
        "reserved_count": 0,
        "gallery_token": "gallery-token",
        "gallery_expires_at": None,
        "analytics": {"totalCaptures": 0},
    }
    values.update(overrides)
    return EventRecord(**values)


def make_capture(
    event_id: UUID, capture_number: int, **overrides: object
) -> CaptureRecord:
    """Build an uploaded capture row."""
    values: dict[str, object] = {
        "id": uuid4(),
        "event_id": event_id,
        "capture_number": capture_number,
        "timestamp": NOW,
        "storage_path": f"{event_id}/{capture_number}_1.jpg",
        "storage_url": None,
        "device_saved": False,
        "uploaded_to_cloud": True,
    }
    values.update(overrides)
    return CaptureRecord(**values)


@dataclass
class InMemoryEventRepository(EventRepository):
    """In-memory event repository for tests."""

    events: dict[UUID, EventRecord] = field(default_factory=dict)
    updates: list[dict[str, object]] = field(default_factory=list)
    fail_listing: bool = False

    def add(self, event: EventRecord) -> EventRecord:
        self.events[event.id] = event
        return event

    def get_event(self, event_id: UUID) -> EventRecord | None:
        return self.events.get(event_id)

    def get_event_by_slug(self, slug: str) -> EventRecord | None:
        for event in self.events.values():
            if event.slug == slug:
                return event
        return None

    def list_events(self, limit: int) -> list[EventRecord]:
        return list(self.events.values())[:limit]

    def create_event(self, payload: dict[str, object]) -> EventRecord:
        event = EventRecord(id=uuid4(), created_at=NOW, **payload)
        self.events[event.id] = event
        return event

    def compare_and_update(
        self,
        event_id: UUID,
        expected: dict[str, object],
        changes: dict[str, object],
    ) -> bool:
        event = self.events.get(event_id)
        if event is None:
            return False
        current = asdict(event)
        if any(current[column] != value for column, value in expected.items()):
            return False
        self.events[event_id] = replace(event, **changes)
        self.updates.append(changes)
        return True

    def list_expired_galleries(self, now: datetime) -> list[EventRecord]:
        if self.fail_listing:
            raise RuntimeError("database unavailable")
        return [
            event
            for event in self.events.values()
            if event.status == "expired"
            and event.gallery_expires_at is not None
            and event.gallery_expires_at < now
        ]


@dataclass
class InMemoryCaptureRepository(CaptureRepository):
    """In-memory capture repository for tests."""

    captures: dict[UUID, CaptureRecord] = field(default_factory=dict)
    fail_delete_for: set[UUID] = field(default_factory=set)

    def add(self, capture: CaptureRecord) -> CaptureRecord:
        self.captures[capture.id] = capture
        return capture

    def create_capture(self, payload: dict[str, object]) -> CaptureRecord:
        for existing in self.captures.values():
            if (
                existing.event_id == payload["event_id"]
                and existing.capture_number == payload["capture_number"]
            ):
                raise DuplicateCaptureError("duplicate capture number")
        capture = CaptureRecord(id=uuid4(), **payload)
        self.captures[capture.id] = capture
        return capture

    def find_by_number(
        self, event_id: UUID, capture_number: int
    ) -> CaptureRecord | None:
        for capture in self.captures.values():
            if (
                capture.event_id == event_id
                and capture.capture_number == capture_number
            ):
                return capture
        return None

    def list_cloud_captures(self, event_id: UUID) -> list[CaptureRecord]:
        return sorted(
            (
                capture
                for capture in self.captures.values()
                if capture.event_id == event_id and capture.uploaded_to_cloud
            ),
            key=lambda capture: capture.capture_number,
        )

    def mark_uploaded(
        self, capture_id: UUID, storage_path: str, storage_url: str | None
    ) -> CaptureRecord | None:
        capture = self.captures.get(capture_id)
        if capture is None:
            return None
        updated = replace(
            capture,
            uploaded_to_cloud=True,
            storage_path=storage_path,
            storage_url=storage_url,
        )
        self.captures[capture_id] = updated
        return updated

    def delete_for_event(self, event_id: UUID) -> int:
        if event_id in self.fail_delete_for:
            raise RuntimeError("capture delete failed")
        doomed = [c.id for c in self.captures.values() if c.event_id == event_id]
        for capture_id in doomed:
            del self.captures[capture_id]
        return len(doomed)


@dataclass
class InMemoryCleanupLogRepository(CleanupLogRepository):
    """In-memory cleanup audit repository for tests."""

    summaries: list[CleanupSummary] = field(default_factory=list)
    errors: list[CleanupErrorEntry] = field(default_factory=list)
    pruned_before: list[datetime] = field(default_factory=list)

    def create_summary(self, summary: CleanupSummary) -> None:
        self.summaries.append(summary)

    def create_error(self, entry: CleanupErrorEntry) -> None:
        self.errors.append(entry)

    def list_summaries(self, limit: int) -> list[dict[str, object]]:
        return [asdict(summary) for summary in reversed(self.summaries)][:limit]

    def list_errors(self, limit: int) -> list[dict[str, object]]:
        return [
            {
                "event_id": str(entry.event_id) if entry.event_id else None,
                "event_name": entry.event_name,
                "error": entry.error,
                "fatal": entry.fatal,
            }
            for entry in reversed(self.errors)
        ][:limit]

    def prune(self, before: datetime) -> None:
        self.pruned_before.append(before)


@dataclass
class InMemoryObjectStorage(ObjectStorage):
    """In-memory bucket storage for tests."""

    objects: dict[tuple[str, str], tuple[bytes, datetime]] = field(
        default_factory=dict
    )
    uploads: list[tuple[str, str]] = field(default_factory=list)
    broken_paths: set[str] = field(default_factory=set)
    clock: FrozenClock = field(default_factory=FrozenClock)

    def put(
        self, bucket: str, path: str, data: bytes, updated_at: datetime | None = None
    ) -> None:
        self.objects[(bucket, path)] = (data, updated_at or self.clock())

    def list_objects(self, bucket: str, prefix: str) -> list[StoredObject]:
        folder = prefix.strip("/") + "/"
        return [
            StoredObject(path=path, updated_at=updated_at)
            for (stored_bucket, path), (_, updated_at) in self.objects.items()
            if stored_bucket == bucket
            and path.startswith(folder)
            and "/" not in path[len(folder) :]
        ]

    def get_object(self, bucket: str, path: str) -> StoredObject | None:
        stored = self.objects.get((bucket, path))
        if stored is None:
            return None
        return StoredObject(path=path, updated_at=stored[1])

    def download(self, bucket: str, path: str) -> bytes:
        if path in self.broken_paths:
            raise RuntimeError(f"download failed: {path}")
        stored = self.objects.get((bucket, path))
        if stored is None:
            raise RuntimeError(f"object not found: {path}")
        return stored[0]

    def upload(
        self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool
    ) -> None:
        if not upsert and (bucket, path) in self.objects:
            raise RuntimeError(f"object exists: {path}")
        self.uploads.append((bucket, path))
        self.put(bucket, path, data)

    def remove(self, bucket: str, paths: list[str]) -> int:
        removed = 0
        for path in paths:
            if self.objects.pop((bucket, path), None) is not None:
                removed += 1
        return removed

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        return f"https://storage.test/{bucket}/{path}?token=signed&expires={expires_in}"

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://storage.test/public/{bucket}/{path}"


@dataclass
class FakePhotoDownloader:
    """Photo downloader serving bytes from a URL map."""

    photos: dict[str, bytes] = field(default_factory=dict)

    async def download(self, url: str) -> bytes:
        if url not in self.photos:
            raise RuntimeError(f"404 for {url}")
        return self.photos[url]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service.key.signature",
        admin_token="admin-token",
        cron_secret="cron-secret",
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def event_repository() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def capture_repository() -> InMemoryCaptureRepository:
    return InMemoryCaptureRepository()


@pytest.fixture
def cleanup_log_repository() -> InMemoryCleanupLogRepository:
    return InMemoryCleanupLogRepository()


@pytest.fixture
def storage(clock: FrozenClock) -> InMemoryObjectStorage:
    return InMemoryObjectStorage(clock=clock)


@pytest.fixture
def downloader() -> FakePhotoDownloader:
    return FakePhotoDownloader()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    clock: FrozenClock,
    event_repository: InMemoryEventRepository,
    capture_repository: InMemoryCaptureRepository,
    cleanup_log_repository: InMemoryCleanupLogRepository,
    storage: InMemoryObjectStorage,
    downloader: FakePhotoDownloader,
) -> AppContainer:
    event_service = EventService(event_repository, now=clock)
    reservation_service = ReservationService(event_repository, now=clock)
    capture_service = CaptureService(
        event_repository=event_repository,
        repository=capture_repository,
        storage=storage,
        now=clock,
    )
    album_service = AlbumService(
        event_repository=event_repository,
        capture_repository=capture_repository,
        storage=storage,
        downloader=downloader,
        now=clock,
    )
    cleanup_service = CleanupService(
        event_repository=event_repository,
        capture_repository=capture_repository,
        log_repository=cleanup_log_repository,
        storage=storage,
        now=clock,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        event_service=event_service,
        reservation_service=reservation_service,
        capture_service=capture_service,
        album_service=album_service,
        cleanup_service=cleanup_service,
        close_resources=close_resources,
    )
