"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse

from event_photobooth.api.admin import router as admin_router
from event_photobooth.api.payloads import (
    ALBUM_RESPONSES,
    INTERNAL_ERROR,
    RESERVATION_RESPONSES,
    GenerateZipRequest,
    MarkUploadedRequest,
    RecordCaptureRequest,
    ReserveCaptureRequest,
    album_payload,
    capture_payload,
    cleanup_payload,
    failure_payload,
    public_event_payload,
    reservation_payload,
    status_for,
)
from event_photobooth.app_logging import configure_logging
from event_photobooth.config import parse_bearer_token
from event_photobooth.containers import AppContainer
from event_photobooth.domain.results import ReservationResult
from event_photobooth.services.cleanup import CleanupFailedError


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    def _reservation_response(result: ReservationResult) -> JSONResponse:
        return JSONResponse(
            reservation_payload(result), status_code=status_for(result.code)
        )

    @app.post("/captures/reserve", responses=RESERVATION_RESPONSES)
    async def reserve_capture(
        body: ReserveCaptureRequest, request: Request
    ) -> JSONResponse:
        """Claim the next capture slot of an event."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.reservation_service.reserve(body.event_id)
        except Exception:
            logger.exception("Error reserving capture for event %s", body.event_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        return _reservation_response(result)

    @app.post("/captures/reserve-buffer", responses=RESERVATION_RESPONSES)
    async def reserve_capture_with_buffer(
        body: ReserveCaptureRequest, request: Request
    ) -> JSONResponse:
        """Hold a provisional capture slot."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.reservation_service.reserve_with_buffer(
                body.event_id
            )
        except Exception:
            logger.exception("Error reserving buffered slot for %s", body.event_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        return _reservation_response(result)

    @app.post("/captures/confirm", responses=RESERVATION_RESPONSES)
    async def confirm_capture(
        body: ReserveCaptureRequest, request: Request
    ) -> JSONResponse:
        """Convert a held slot into a capture."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.reservation_service.confirm(body.event_id)
        except Exception:
            logger.exception("Error confirming capture for event %s", body.event_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        return _reservation_response(result)

    @app.post("/captures/{capture_id}/uploaded")
    async def mark_capture_uploaded(
        capture_id: UUID, body: MarkUploadedRequest, request: Request
    ) -> JSONResponse:
        """Flag a capture whose photo was uploaded after it was recorded."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.capture_service.mark_uploaded(
                capture_id, body.storage_path, body.storage_url
            )
        except Exception:
            logger.exception("Error marking capture %s uploaded", capture_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        if not result.success or result.capture is None:
            return JSONResponse(
                failure_payload(result.message), status_code=status_for(result.code)
            )
        return JSONResponse(
            {"success": True, "capture": capture_payload(result.capture)}
        )

    @app.post("/albums/zip", responses=ALBUM_RESPONSES)
    async def generate_album_zip(
        body: GenerateZipRequest, request: Request
    ) -> JSONResponse:
        """Return a signed download URL for an event's photo archive."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.album_service.generate(
                body.event_id, body.gallery_token
            )
        except Exception:
            logger.exception("Error generating album for event %s", body.event_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        return JSONResponse(album_payload(result), status_code=status_for(result.code))

    @app.get("/events/{slug}")
    async def get_event(slug: str, request: Request) -> JSONResponse:
        """Return the public view of an event for the camera page."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.event_service.get_public_event(slug)
        except Exception:
            logger.exception("Error loading event %s", slug)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        if not result.success or result.event is None:
            return JSONResponse(
                failure_payload(result.message), status_code=status_for(result.code)
            )
        return JSONResponse(
            {"success": True, "event": public_event_payload(result.event)}
        )

    @app.post("/events/{event_id}/captures")
    async def record_capture(
        event_id: UUID, body: RecordCaptureRequest, request: Request
    ) -> JSONResponse:
        """Record the capture of a reserved slot, optionally with its photo."""
        state_container: AppContainer = request.app.state.container
        photo = None
        if body.photo_base64:
            photo = _decode_photo(body.photo_base64)
            if photo is None:
                return JSONResponse(
                    failure_payload("Photo is not valid base64"), status_code=400
                )
        try:
            result = state_container.capture_service.record_capture(
                event_id,
                body.capture_number,
                photo,
                device_saved=body.device_saved,
                original_size=body.original_size,
                width=body.width,
                height=body.height,
            )
        except Exception:
            logger.exception("Error recording capture for event %s", event_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        if not result.success or result.capture is None:
            return JSONResponse(
                failure_payload(result.message), status_code=status_for(result.code)
            )
        return JSONResponse(
            {"success": True, "capture": capture_payload(result.capture)},
            status_code=201,
        )

    @app.get("/events/{event_id}/gallery")
    async def event_gallery(
        event_id: UUID, token: str, request: Request
    ) -> JSONResponse:
        """Return the cloud photos of an event."""
        state_container: AppContainer = request.app.state.container
        try:
            result = state_container.capture_service.list_gallery(event_id, token)
        except Exception:
            logger.exception("Error listing gallery of event %s", event_id)
            return JSONResponse(INTERNAL_ERROR, status_code=500)
        if not result.success:
            return JSONResponse(
                failure_payload(result.message), status_code=status_for(result.code)
            )
        return JSONResponse(
            {
                "success": True,
                "captures": [capture_payload(c) for c in result.captures or []],
            }
        )

    @app.get("/cron/cleanup")
    async def scheduled_cleanup(
        request: Request, authorization: str | None = Header(default=None)
    ) -> JSONResponse:
        """Run the daily gallery cleanup when called by the platform scheduler."""
        state_container: AppContainer = request.app.state.container
        cron_secret = state_container.settings.cron_secret
        if not cron_secret or parse_bearer_token(authorization) != cron_secret:
            return JSONResponse(failure_payload("Unauthorized"), status_code=401)
        try:
            summary = state_container.cleanup_service.run()
        except CleanupFailedError:
            return JSONResponse(failure_payload("Cleanup failed"), status_code=500)
        return JSONResponse(cleanup_payload(summary))

    return app


def _decode_photo(raw: str) -> bytes | None:
    _, _, encoded = raw.rpartition(",")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return None
