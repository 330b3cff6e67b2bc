"""Supabase-backed capture repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client, PostgrestAPIError

from event_photobooth.domain.captures import CaptureRecord
from event_photobooth.services.captures import CaptureRepository, DuplicateCaptureError

# Postgres error code raised by the (event_id, capture_number) unique index.
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseCaptureRepository(CaptureRepository):
    """Supabase implementation for capture metadata."""

    client: Client

    def create_capture(self, payload: dict[str, object]) -> CaptureRecord:
        """Insert a capture row and return it."""
        row = {key: _serialize(value) for key, value in payload.items()}
        try:
            response = self.client.table("captures").insert(row).execute()
        except PostgrestAPIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateCaptureError(
                    f"Capture {payload.get('capture_number')} already exists"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create capture")
        return _to_capture(response.data[0])

    def find_by_number(
        self, event_id: UUID, capture_number: int
    ) -> CaptureRecord | None:
        """Return the capture with a sequence number, if present."""
        response = (
            self.client.table("captures")
            .select("*")
            .eq("event_id", str(event_id))
            .eq("capture_number", capture_number)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_capture(response.data[0])

    def list_cloud_captures(self, event_id: UUID) -> list[CaptureRecord]:
        """Return uploaded captures in capture order."""
        response = (
            self.client.table("captures")
            .select("*")
            .eq("event_id", str(event_id))
            .eq("uploaded_to_cloud", True)
            .order("capture_number")
            .execute()
        )
        return [_to_capture(row) for row in response.data or []]

    def mark_uploaded(
        self, capture_id: UUID, storage_path: str, storage_url: str | None
    ) -> CaptureRecord | None:
        """Flag a capture as uploaded."""
        response = (
            self.client.table("captures")
            .update(
                {
                    "uploaded_to_cloud": True,
                    "storage_path": storage_path,
                    "storage_url": storage_url,
                }
            )
            .eq("id", str(capture_id))
            .execute()
        )
        if not response.data:
            return None
        return _to_capture(response.data[0])

    def delete_for_event(self, event_id: UUID) -> int:
        """Delete every capture row of an event."""
        response = (
            self.client.table("captures")
            .delete()
            .eq("event_id", str(event_id))
            .execute()
        )
        return len(response.data or [])


def _serialize(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _to_capture(row: dict[str, object]) -> CaptureRecord:
    return CaptureRecord(
        id=UUID(row["id"]),
        event_id=UUID(row["event_id"]),
        capture_number=row["capture_number"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        storage_path=row.get("storage_path"),
        storage_url=row.get("storage_url"),
        device_saved=bool(row.get("device_saved")),
        uploaded_to_cloud=bool(row.get("uploaded_to_cloud")),
        original_size=row.get("original_size"),
        compressed_size=row.get("compressed_size"),
        width=row.get("width"),
        height=row.get("height"),
    )
