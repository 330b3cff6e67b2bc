"""Supabase-backed event repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from event_photobooth.domain.events import EXPIRED, EventRecord
from event_photobooth.services.events import EventRepository


@dataclass
class SupabaseEventRepository(EventRepository):
    """Supabase implementation for event persistence."""

    client: Client

    def get_event(self, event_id: UUID) -> EventRecord | None:
        """Return an event by id, if present."""
        response = (
            self.client.table("events")
            .select("*")
            .eq("id", str(event_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_event(response.data[0])

    def get_event_by_slug(self, slug: str) -> EventRecord | None:
        """Return an event by slug, if present."""
        response = (
            self.client.table("events").select("*").eq("slug", slug).limit(1).execute()
        )
        if not response.data:
            return None
        return _to_event(response.data[0])

    def list_events(self, limit: int) -> list[EventRecord]:
        """Return recent events, newest first."""
        response = (
            self.client.table("events")
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_to_event(row) for row in response.data or []]

    def create_event(self, payload: dict[str, object]) -> EventRecord:
        """Insert an event row and return it."""
        response = (
            self.client.table("events").insert(_serialize_row(payload)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create event")
        return _to_event(response.data[0])

    def compare_and_update(
        self,
        event_id: UUID,
        expected: dict[str, object],
        changes: dict[str, object],
    ) -> bool:
        """Conditionally update an event; False when no row matched."""
        query = (
            self.client.table("events")
            .update(_serialize_row(changes))
            .eq("id", str(event_id))
        )
        for column, value in expected.items():
            query = query.eq(column, _serialize(value))
        response = query.execute()
        return bool(response.data)

    def list_expired_galleries(self, now: datetime) -> list[EventRecord]:
        """Return expired events whose gallery expired before now."""
        response = (
            self.client.table("events")
            .select("*")
            .eq("status", EXPIRED)
            .lt("gallery_expires_at", now.isoformat())
            .execute()
        )
        return [_to_event(row) for row in response.data or []]


def _serialize(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _serialize_row(payload: dict[str, object]) -> dict[str, object]:
    return {key: _serialize(value) for key, value in payload.items()}


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _to_event(row: dict[str, object]) -> EventRecord:
    analytics = row.get("analytics")
    return EventRecord(
        id=UUID(row["id"]),
        slug=row["slug"],
        name=row["name"],
        plan=row["plan"],
        photo_limit=row["photo_limit"],
        validity_days=row["validity_days"],
        has_cloud_album=row["has_cloud_album"],
        start_date=datetime.fromisoformat(row["start_date"]),
        end_date=datetime.fromisoformat(row["end_date"]),
        status=row["status"],
        capture_count=row["capture_count"],
        reserved_count=row.get("reserved_count") or 0,
        gallery_token=row["gallery_token"],
        gallery_expires_at=_parse_datetime(row.get("gallery_expires_at")),
        analytics=analytics if isinstance(analytics, dict) else {},
        created_at=_parse_datetime(row.get("created_at")),
        deployed_at=_parse_datetime(row.get("deployed_at")),
    )
