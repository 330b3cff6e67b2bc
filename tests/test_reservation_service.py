"""Tests for capture slot reservation."""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID, uuid4

from event_photobooth.domain.events import ACTIVE, CLEANED, DRAFT, EXPIRED, EventRecord
from event_photobooth.domain.results import CONFLICT, NOT_FOUND, PRECONDITION_FAILED
from event_photobooth.services.reservations import ReservationService
from tests.conftest import NOW, FrozenClock, InMemoryEventRepository, make_event


@dataclass
class StaleReadRepository(InMemoryEventRepository):
    """Repository whose reads return a snapshot taken before another write."""

    snapshot: EventRecord | None = None

    def get_event(self, event_id: UUID) -> EventRecord | None:
        return self.snapshot


def _service(repo: InMemoryEventRepository) -> ReservationService:
    return ReservationService(repo, now=FrozenClock())


def test_reserve_increments_counter_and_analytics() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(capture_count=3, analytics={"totalCaptures": 3}))

    result = _service(repo).reserve(event.id)

    assert result.success
    assert result.capture_number == 4
    assert result.event is not None
    assert result.event.capture_count == 4
    assert result.event.status == ACTIVE
    stored = repo.events[event.id]
    assert stored.capture_count == 4
    assert stored.analytics["totalCaptures"] == 4
    assert stored.analytics["peakHour"] == 12
    assert stored.analytics["lastCaptureAt"] == NOW.isoformat()


def test_reserve_last_slot_expires_event() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(photo_limit=10, capture_count=9))

    result = _service(repo).reserve(event.id)

    assert result.success
    assert result.capture_number == 10
    assert result.event is not None
    assert result.event.status == EXPIRED
    stored = repo.events[event.id]
    assert stored.status == EXPIRED
    assert stored.gallery_expires_at == NOW + timedelta(days=15)


def test_reserve_at_limit_is_rejected_without_writes() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(photo_limit=10, capture_count=10))

    result = _service(repo).reserve(event.id)

    assert not result.success
    assert result.code == PRECONDITION_FAILED
    assert result.message == "Photo limit reached"
    assert repo.updates == []
    assert repo.events[event.id] == event


def test_reserve_missing_event() -> None:
    result = _service(InMemoryEventRepository()).reserve(uuid4())

    assert not result.success
    assert result.code == NOT_FOUND
    assert result.event is None


def test_reserve_rejects_inactive_statuses() -> None:
    repo = InMemoryEventRepository()
    service = _service(repo)
    for status in (DRAFT, EXPIRED, CLEANED):
        event = repo.add(make_event(status=status))
        result = service.reserve(event.id)
        assert not result.success
        assert result.message == "Event is not active"
    assert repo.updates == []


def test_reserve_before_start() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(start_date=NOW + timedelta(hours=1)))

    result = _service(repo).reserve(event.id)

    assert not result.success
    assert result.message == "Event has not started yet"
    assert repo.updates == []


def test_reserve_after_end_expires_once() -> None:
    repo = InMemoryEventRepository()
    clock = FrozenClock()
    service = ReservationService(repo, now=clock)
    event = repo.add(make_event(end_date=NOW - timedelta(minutes=1)))

    first = service.reserve(event.id)
    clock.advance(timedelta(hours=2))
    second = service.reserve(event.id)

    assert first.message == "Event has ended"
    assert first.event is not None
    assert first.event.status == EXPIRED
    assert second.message == "Event is not active"
    stored = repo.events[event.id]
    assert stored.status == EXPIRED
    assert stored.gallery_expires_at == NOW + timedelta(days=15)
    assert len(repo.updates) == 1


def test_concurrent_reservations_only_one_wins() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(capture_count=5))
    stale = StaleReadRepository(events=repo.events, snapshot=event)

    winner = _service(repo).reserve(event.id)
    loser = _service(stale).reserve(event.id)

    assert winner.success
    assert winner.capture_number == 6
    assert not loser.success
    assert loser.code == CONFLICT
    assert repo.events[event.id].capture_count == 6


def test_reserve_conflicts_with_concurrent_buffered_hold() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(photo_limit=10, capture_count=8, reserved_count=1))
    stale = StaleReadRepository(events=repo.events, snapshot=event)

    held = _service(repo).reserve_with_buffer(event.id)
    result = _service(stale).reserve(event.id)

    assert held.success
    assert not result.success
    assert result.code == CONFLICT
    stored = repo.events[event.id]
    assert stored.capture_count == 8
    assert stored.reserved_count == 2
    assert stored.capture_count + stored.reserved_count <= stored.photo_limit


def test_reserve_respects_reserved_slots() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(photo_limit=10, capture_count=7, reserved_count=3))

    result = _service(repo).reserve(event.id)

    assert not result.success
    assert result.message == "No available slots (some are reserved)"


def test_buffered_reservation_then_confirm() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(photo_limit=10, capture_count=4, reserved_count=1))
    service = _service(repo)

    held = service.reserve_with_buffer(event.id)

    assert held.success
    assert held.capture_number == 6
    assert repo.events[event.id].reserved_count == 2
    assert repo.events[event.id].capture_count == 4

    confirmed = service.confirm(event.id)

    assert confirmed.success
    assert confirmed.capture_number == 5
    stored = repo.events[event.id]
    assert stored.capture_count == 5
    assert stored.reserved_count == 1
    assert stored.analytics["totalCaptures"] == 1


def test_confirm_final_slot_expires_event() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(photo_limit=3, capture_count=2, reserved_count=1))

    result = _service(repo).confirm(event.id)

    assert result.success
    assert result.event is not None
    assert result.event.status == EXPIRED
    stored = repo.events[event.id]
    assert stored.reserved_count == 0
    assert stored.gallery_expires_at == NOW + timedelta(days=15)


def test_confirm_after_end_reports_ended() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(
        make_event(reserved_count=1, end_date=NOW - timedelta(seconds=1))
    )

    result = _service(repo).confirm(event.id)

    assert not result.success
    assert result.message == "Event has ended"
    assert repo.events[event.id].status == EXPIRED
    assert repo.events[event.id].capture_count == 0


def test_buffered_conflict_is_reported() -> None:
    repo = InMemoryEventRepository()
    event = repo.add(make_event(reserved_count=0))
    stale = StaleReadRepository(events=repo.events, snapshot=event)

    _service(repo).reserve_with_buffer(event.id)
    result = _service(stale).reserve_with_buffer(event.id)

    assert result.code == CONFLICT
    assert repo.events[event.id].reserved_count == 1
