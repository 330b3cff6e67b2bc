"""Domain models for captured photos."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class CaptureRecord:
    """Metadata row for a single captured photo."""

    id: UUID
    event_id: UUID
    capture_number: int
    timestamp: datetime
    storage_path: str | None
    storage_url: str | None
    device_saved: bool
    uploaded_to_cloud: bool
    original_size: int | None = None
    compressed_size: int | None = None
    width: int | None = None
    height: int | None = None
