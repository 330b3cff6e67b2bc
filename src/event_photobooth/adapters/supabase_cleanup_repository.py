"""Supabase repository for cleanup audit rows."""

from dataclasses import asdict, dataclass
from datetime import datetime

from supabase import Client

from event_photobooth.domain.cleanup import CleanupErrorEntry, CleanupSummary
from event_photobooth.services.cleanup import CleanupLogRepository


@dataclass
class SupabaseCleanupLogRepository(CleanupLogRepository):
    """Supabase-backed cleanup log repository."""

    client: Client

    def create_summary(self, summary: CleanupSummary) -> None:
        """Insert a cleanup summary row."""
        self.client.table("cleanup_logs").insert(asdict(summary)).execute()

    def create_error(self, entry: CleanupErrorEntry) -> None:
        """Insert a cleanup error row."""
        self.client.table("cleanup_errors").insert(
            {
                "event_id": str(entry.event_id) if entry.event_id else None,
                "event_name": entry.event_name,
                "error": entry.error,
                "fatal": entry.fatal,
            }
        ).execute()

    def list_summaries(self, limit: int) -> list[dict[str, object]]:
        """Return recent cleanup summaries."""
        response = (
            self.client.table("cleanup_logs")
            .select("*")
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    def list_errors(self, limit: int) -> list[dict[str, object]]:
        """Return recent cleanup errors."""
        response = (
            self.client.table("cleanup_errors")
            .select("*")
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    def prune(self, before: datetime) -> None:
        """Delete audit rows older than the cutoff."""
        cutoff = before.isoformat()
        self.client.table("cleanup_logs").delete().lt("timestamp", cutoff).execute()
        self.client.table("cleanup_errors").delete().lt("timestamp", cutoff).execute()
