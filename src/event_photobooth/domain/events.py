"""Domain models for photo-booth events."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

DRAFT = "draft"
ACTIVE = "active"
EXPIRED = "expired"
CLEANED = "cleaned"

EVENT_STATUSES = (DRAFT, ACTIVE, EXPIRED, CLEANED)


@dataclass(frozen=True)
class Plan:
    """Plan tier fixing the limits of an event."""

    name: str
    photo_limit: int
    validity_days: int
    has_cloud_album: bool


PLANS: dict[str, Plan] = {
    "free": Plan(name="free", photo_limit=10, validity_days=3, has_cloud_album=False),
    "basic": Plan(
        name="basic", photo_limit=100, validity_days=10, has_cloud_album=False
    ),
    "pro": Plan(name="pro", photo_limit=500, validity_days=14, has_cloud_album=True),
    "premium": Plan(
        name="premium", photo_limit=5000, validity_days=90, has_cloud_album=True
    ),
}


@dataclass(frozen=True)
class EventRecord:
    """Represents a persisted event row."""

    id: UUID
    slug: str
    name: str
    plan: str
    photo_limit: int
    validity_days: int
    has_cloud_album: bool
    start_date: datetime
    end_date: datetime
    status: str
    capture_count: int
    reserved_count: int
    gallery_token: str
    gallery_expires_at: datetime | None = None
    analytics: dict[str, object] = field(default_factory=dict)
    created_at: datetime | None = None
    deployed_at: datetime | None = None


@dataclass(frozen=True)
class EventSnapshot:
    """Counter view of an event returned to capture clients."""

    capture_count: int
    photo_limit: int
    status: str

    @classmethod
    def of(cls, event: EventRecord) -> "EventSnapshot":
        """Build a snapshot from an event record."""
        return cls(
            capture_count=event.capture_count,
            photo_limit=event.photo_limit,
            status=event.status,
        )
