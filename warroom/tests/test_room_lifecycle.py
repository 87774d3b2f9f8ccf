from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from warroom.errors import RoomClosed, RoomNotLive
from warroom.schemas.room import RoomPhase
from warroom.services import room_lifecycle

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _room(**overrides):
    fields = {
        "room_id": "WAR20260301-0001",
        "status": "Active",
        "is_live": False,
        "scheduled_time": NOW + timedelta(hours=2),
        "started_at": None,
        "end_time": None,
        "outcome": None,
        "summary": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_new_room_is_scheduled():
    room = _room()
    assert room_lifecycle.derive_phase(room) == RoomPhase.SCHEDULED
    assert not room_lifecycle.is_display_live(room, NOW)


def test_start_marks_room_live_once():
    room = _room()
    assert room_lifecycle.start(room, NOW) is True
    assert room.is_live is True
    assert room.started_at == NOW
    assert room_lifecycle.derive_phase(room) == RoomPhase.LIVE

    later = NOW + timedelta(minutes=5)
    assert room_lifecycle.start(room, later) is False
    assert room.started_at == NOW


def test_close_records_outcome_and_end_time():
    room = _room(is_live=True)
    room_lifecycle.close(
        room, {"resolved": True, "decision": "Bridge round"}, "Raised 200k", NOW
    )
    assert room.status == "Closed"
    assert room.is_live is False
    assert room.end_time == NOW
    assert room.outcome == {"resolved": True, "decision": "Bridge round"}
    assert room.summary == "Raised 200k"
    assert room_lifecycle.derive_phase(room) == RoomPhase.CLOSED


def test_close_without_outcome_defaults_to_unresolved():
    room = _room()
    room_lifecycle.close(room, now=NOW)
    assert room.outcome == {"resolved": False}


def test_closed_room_cannot_restart_or_close_again():
    room = _room()
    room_lifecycle.close(room, now=NOW)
    with pytest.raises(RoomClosed):
        room_lifecycle.start(room, NOW)
    with pytest.raises(RoomClosed):
        room_lifecycle.close(room, now=NOW)
    assert room.status == "Closed"
    assert room.is_live is False


def test_ensure_live_distinguishes_scheduled_from_closed():
    with pytest.raises(RoomNotLive):
        room_lifecycle.ensure_live(_room())
    with pytest.raises(RoomClosed):
        room_lifecycle.ensure_live(_room(status="Closed"))
    room_lifecycle.ensure_live(_room(is_live=True))


def test_past_schedule_is_display_only():
    room = _room(scheduled_time=NOW - timedelta(minutes=1))
    assert room_lifecycle.is_display_live(room, NOW) is True
    # Only the explicit flag gates live operations.
    assert room.is_live is False
    assert room_lifecycle.derive_phase(room) == RoomPhase.SCHEDULED
    with pytest.raises(RoomNotLive):
        room_lifecycle.ensure_live(room)


def test_closed_room_is_never_display_live():
    room = _room(status="Closed", scheduled_time=NOW - timedelta(days=1))
    assert room_lifecycle.is_display_live(room, NOW) is False


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2026, 3, 1, 12, 0)
    assert room_lifecycle.as_utc(naive) == NOW
    assert room_lifecycle.as_utc(None) is None
