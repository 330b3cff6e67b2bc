"""Request models and response builders for the HTTP API."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from event_photobooth.domain.captures import CaptureRecord
from event_photobooth.domain.cleanup import CleanupSummary
from event_photobooth.domain.events import EventRecord
from event_photobooth.domain.results import (
    CONFLICT,
    INTERNAL,
    NOT_FOUND,
    PERMISSION_DENIED,
    PRECONDITION_FAILED,
    AlbumResult,
    ReservationResult,
)

_STATUS_CODES = {
    NOT_FOUND: 404,
    PERMISSION_DENIED: 403,
    PRECONDITION_FAILED: 400,
    CONFLICT: 409,
    INTERNAL: 500,
}

INTERNAL_ERROR = {"success": False, "message": "Internal server error"}

# Rejections answer with an HTTP error status and a `success: false` body.
RESERVATION_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {
        "description": "Event not active, not started, ended, or out of slots. "
        "Body: `{success: false, message, event}`."
    },
    404: {"description": "Event not found. Body: `{success: false, message}`."},
    409: {
        "description": "Concurrent update conflict, retry the request. "
        "Body: `{success: false, message}`."
    },
}

ALBUM_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {
        "description": "No cloud album, gallery archived or gallery expired. "
        "Body: `{success: false, message}`."
    },
    403: {"description": "Invalid gallery token. Body: `{success: false, message}`."},
    404: {
        "description": "Event or photos not found. Body: `{success: false, message}`."
    },
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReserveCaptureRequest(_CamelModel):
    """Body of the reserve, reserve-buffer and confirm endpoints."""

    event_id: UUID


class GenerateZipRequest(_CamelModel):
    """Body of the album archive endpoint."""

    event_id: UUID
    gallery_token: str = Field(min_length=1)


class RecordCaptureRequest(_CamelModel):
    """Body for recording a capture of a reserved slot."""

    capture_number: int = Field(ge=1)
    photo_base64: str | None = None
    device_saved: bool = False
    original_size: int | None = Field(default=None, ge=0)
    width: int | None = Field(default=None, ge=0)
    height: int | None = Field(default=None, ge=0)


class MarkUploadedRequest(_CamelModel):
    """Body for flagging a capture as uploaded."""

    storage_path: str = Field(min_length=1)
    storage_url: str | None = None


class CreateEventRequest(_CamelModel):
    """Body for creating a draft event."""

    name: str = Field(min_length=1)
    slug: str = Field(min_length=1, pattern=r"^[a-z0-9][a-z0-9-]*$")
    plan: Literal["free", "basic", "pro", "premium"]
    start_date: datetime


def reservation_payload(result: ReservationResult) -> dict[str, object]:
    """Serialize a reservation result in the capture client's shape."""
    payload: dict[str, object] = {"success": result.success}
    if result.capture_number is not None:
        payload["captureNumber"] = result.capture_number
    if result.message is not None:
        payload["message"] = result.message
    if result.event is not None:
        payload["event"] = {
            "captureCount": result.event.capture_count,
            "photoLimit": result.event.photo_limit,
            "status": result.event.status,
        }
    return payload


def album_payload(result: AlbumResult) -> dict[str, object]:
    """Serialize an album result."""
    payload: dict[str, object] = {"success": result.success}
    if result.download_url is not None:
        payload["downloadUrl"] = result.download_url
    if result.expires_at is not None:
        payload["expiresAt"] = result.expires_at.isoformat()
    if result.message is not None:
        payload["message"] = result.message
    return payload


def public_event_payload(event: EventRecord) -> dict[str, object]:
    """Serialize the attendee-visible fields of an event."""
    return {
        "id": str(event.id),
        "slug": event.slug,
        "name": event.name,
        "status": event.status,
        "photoLimit": event.photo_limit,
        "captureCount": event.capture_count,
        "remainingPhotos": max(0, event.photo_limit - event.capture_count),
        "hasCloudAlbum": event.has_cloud_album,
        "startDate": event.start_date.isoformat(),
        "endDate": event.end_date.isoformat(),
    }


def admin_event_payload(event: EventRecord) -> dict[str, object]:
    """Serialize an event for operators, including its gallery token."""
    payload = public_event_payload(event)
    payload.update(
        {
            "plan": event.plan,
            "validityDays": event.validity_days,
            "reservedCount": event.reserved_count,
            "galleryToken": event.gallery_token,
            "galleryExpiresAt": event.gallery_expires_at.isoformat()
            if event.gallery_expires_at
            else None,
            "analytics": event.analytics,
            "deployedAt": event.deployed_at.isoformat() if event.deployed_at else None,
        }
    )
    return payload


def capture_payload(capture: CaptureRecord) -> dict[str, object]:
    """Serialize a capture row."""
    return {
        "id": str(capture.id),
        "eventId": str(capture.event_id),
        "captureNumber": capture.capture_number,
        "timestamp": capture.timestamp.isoformat(),
        "storageUrl": capture.storage_url,
        "deviceSaved": capture.device_saved,
        "uploadedToCloud": capture.uploaded_to_cloud,
        "width": capture.width,
        "height": capture.height,
    }


def cleanup_payload(summary: CleanupSummary) -> dict[str, object]:
    """Serialize a cleanup summary."""
    return {
        "success": True,
        "eventsProcessed": summary.events_processed,
        "eventsCleanedSuccess": summary.events_cleaned_success,
        "eventsCleanedFailed": summary.events_cleaned_failed,
        "totalPhotosDeleted": summary.total_photos_deleted,
        "totalZipsDeleted": summary.total_zips_deleted,
    }


def status_for(code: str | None) -> int:
    """Map a result error code to an HTTP status code."""
    if code is None:
        return 200
    return _STATUS_CODES.get(code, 500)


def failure_payload(message: str | None) -> dict[str, object]:
    """Serialize an unsuccessful result that carries only a message."""
    return {"success": False, "message": message}
