"""Operator API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from event_photobooth.api.payloads import (
    CreateEventRequest,
    admin_event_payload,
    cleanup_payload,
    failure_payload,
    status_for,
)
from event_photobooth.services.cleanup import CleanupFailedError

if TYPE_CHECKING:
    from event_photobooth.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/events", dependencies=[Depends(require_admin)])
async def list_events(request: Request, limit: int = 50) -> dict[str, object]:
    """Return recent events."""
    container: AppContainer = request.app.state.container
    events = container.event_service.list_events(limit)
    return {"events": [admin_event_payload(event) for event in events]}


@router.post("/events", dependencies=[Depends(require_admin)])
async def create_event(body: CreateEventRequest, request: Request) -> JSONResponse:
    """Create a draft event from a plan."""
    container: AppContainer = request.app.state.container
    result = container.event_service.create_event(
        name=body.name, slug=body.slug, plan=body.plan, start_date=body.start_date
    )
    if not result.success or result.event is None:
        return JSONResponse(
            failure_payload(result.message), status_code=status_for(result.code)
        )
    return JSONResponse(
        {"success": True, "event": admin_event_payload(result.event)},
        status_code=201,
    )


@router.post("/events/{event_id}/activate", dependencies=[Depends(require_admin)])
async def activate_event(event_id: UUID, request: Request) -> JSONResponse:
    """Publish a draft event so attendees can capture photos."""
    container: AppContainer = request.app.state.container
    result = container.event_service.activate(event_id)
    if not result.success or result.event is None:
        return JSONResponse(
            failure_payload(result.message), status_code=status_for(result.code)
        )
    return JSONResponse({"success": True, "event": admin_event_payload(result.event)})


@router.post("/cleanup", dependencies=[Depends(require_admin)])
async def run_cleanup(request: Request) -> JSONResponse:
    """Run the gallery cleanup on demand."""
    container: AppContainer = request.app.state.container
    try:
        summary = container.cleanup_service.run()
    except CleanupFailedError:
        return JSONResponse(failure_payload("Cleanup failed"), status_code=500)
    return JSONResponse(cleanup_payload(summary))


@router.get("/cleanup/logs", dependencies=[Depends(require_admin)])
async def cleanup_logs(request: Request, limit: int = 30) -> dict[str, object]:
    """Return recent cleanup summaries."""
    container: AppContainer = request.app.state.container
    return {"logs": container.cleanup_service.list_summaries(limit)}


@router.get("/cleanup/errors", dependencies=[Depends(require_admin)])
async def cleanup_errors(request: Request, limit: int = 50) -> dict[str, object]:
    """Return recent cleanup errors."""
    container: AppContainer = request.app.state.container
    return {"errors": container.cleanup_service.list_errors(limit)}
