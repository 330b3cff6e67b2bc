"""Domain models for gallery cleanup runs."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class CleanupSummary:
    """Counters accumulated over one cleanup batch."""

    events_processed: int = 0
    events_cleaned_success: int = 0
    events_cleaned_failed: int = 0
    total_photos_deleted: int = 0
    total_zips_deleted: int = 0


@dataclass(frozen=True)
class CleanupErrorEntry:
    """Audit entry for a failed cleanup step."""

    event_id: UUID | None
    event_name: str | None
    error: str
    fatal: bool = False
