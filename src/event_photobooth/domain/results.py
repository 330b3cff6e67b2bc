"""Result types shared by the capture, gallery and event services."""

from dataclasses import dataclass
from datetime import datetime

from event_photobooth.domain.captures import CaptureRecord
from event_photobooth.domain.events import EventRecord, EventSnapshot

NOT_FOUND = "not_found"
PRECONDITION_FAILED = "precondition_failed"
PERMISSION_DENIED = "permission_denied"
CONFLICT = "conflict"
INTERNAL = "internal"


@dataclass(frozen=True)
class ReservationResult:
    """Outcome of a reserve, reserve-with-buffer or confirm call."""

    success: bool
    capture_number: int | None = None
    message: str | None = None
    code: str | None = None
    event: EventSnapshot | None = None


@dataclass(frozen=True)
class AlbumResult:
    """Outcome of an album archive request."""

    success: bool
    download_url: str | None = None
    expires_at: datetime | None = None
    message: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class EventResult:
    """Outcome of an operator or public event operation."""

    success: bool
    event: EventRecord | None = None
    message: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of recording or updating a capture."""

    success: bool
    capture: CaptureRecord | None = None
    message: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class GalleryResult:
    """Outcome of a gallery listing."""

    success: bool
    captures: list[CaptureRecord] | None = None
    message: str | None = None
    code: str | None = None
