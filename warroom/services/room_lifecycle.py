"""
Room lifecycle: Scheduled -> Live -> Closed.

The functions here work on any object exposing ``status``, ``is_live``,
``scheduled_time``, ``started_at``, ``end_time``, ``outcome`` and ``summary``
so they apply equally to ORM rows and to plain test doubles. ``is_live`` is
the only flag that gates live-only operations; ``scheduled_time`` is shown to
users but never flips a room live on its own.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from warroom.errors import RoomClosed, RoomNotLive
from warroom.schemas.room import RoomPhase, RoomStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_closed(room: Any) -> bool:
    status = getattr(room.status, "value", room.status)
    return status == RoomStatus.CLOSED.value


def derive_phase(room: Any) -> RoomPhase:
    if is_closed(room):
        return RoomPhase.CLOSED
    if room.is_live:
        return RoomPhase.LIVE
    return RoomPhase.SCHEDULED


def is_display_live(room: Any, now: Optional[datetime] = None) -> bool:
    """Whether a room should be presented as live (informational only)."""
    if is_closed(room):
        return False
    if room.is_live:
        return True
    scheduled = as_utc(room.scheduled_time)
    return scheduled is not None and scheduled <= (now or utcnow())


def ensure_open(room: Any) -> None:
    if is_closed(room):
        logger.info("Rejected write to closed room %s", getattr(room, "room_id", "?"))
        raise RoomClosed()


def ensure_live(room: Any) -> None:
    ensure_open(room)
    if not room.is_live:
        raise RoomNotLive()


def start(room: Any, now: Optional[datetime] = None) -> bool:
    """
    Mark the room live. Returns False when it was already live.
    A closed room can never be restarted.
    """
    ensure_open(room)
    if room.is_live:
        return False
    room.is_live = True
    if room.started_at is None:
        room.started_at = now or utcnow()
    return True


def close(
    room: Any,
    outcome: Optional[Dict[str, Any]] = None,
    summary: Optional[str] = None,
    now: Optional[datetime] = None,
) -> None:
    """One-way transition to Closed; closing twice is rejected."""
    ensure_open(room)
    room.status = RoomStatus.CLOSED.value
    room.is_live = False
    room.end_time = now or utcnow()
    room.outcome = dict(outcome) if outcome else {"resolved": False}
    room.summary = summary
