import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from warroom.models.room import Room
from warroom.models.user import User

USER_ID_PREFIX = "USR"
USER_ID_SEQUENCE_WIDTH = 3
USER_ID_STEM_LENGTH = 6

ROOM_ID_PREFIX = "WAR"
ROOM_ID_SUFFIX_WIDTH = 4


def _clean_stem(value: Optional[str]) -> str:
    """
    Normalise the last name into a six-character uppercase stem.
    Non-alphanumeric characters are stripped and the result padded with X.
    """
    cleaned = re.sub(r"[^A-Z0-9]", "", value.upper()) if value else ""
    return (cleaned[:USER_ID_STEM_LENGTH]).ljust(USER_ID_STEM_LENGTH, "X")


def _clean_initial(value: Optional[str]) -> str:
    """Return the uppercase first initial or 'X' when unavailable."""
    if not value:
        return "X"
    cleaned = re.sub(r"[^A-Z0-9]", "", value.upper())
    return cleaned[0] if cleaned else "X"


def build_user_id_prefix(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{USER_ID_PREFIX}-{_clean_stem(last_name)}{_clean_initial(first_name)}"


def _next_user_sequence(db: Session, prefix: str) -> int:
    existing = (
        db.query(User.user_id)
        .filter(User.user_id.like(f"{prefix}-%"))
        .order_by(User.user_id.desc())
        .limit(1)
        .scalar()
    )
    if not existing:
        return 1
    try:
        return int(existing.split("-")[-1]) + 1
    except (ValueError, IndexError):
        return 1


def generate_user_id(
    db: Session, first_name: Optional[str], last_name: Optional[str]
) -> str:
    """
    Construct a unique `user_id` following the USR-LLLLLLF-NNN pattern.
    The sequence component increments per prefix to avoid collisions.
    """
    prefix = build_user_id_prefix(first_name, last_name)
    sequence = _next_user_sequence(db, prefix)
    return f"{prefix}-{sequence:0{USER_ID_SEQUENCE_WIDTH}d}"


def _format_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if number == 0:
        return "0"
    result = []
    while number:
        number, remainder = divmod(number, 36)
        result.append(digits[remainder])
    return "".join(reversed(result))


def _next_room_sequence(db: Session, date_prefix: str) -> int:
    latest: Optional[str] = (
        db.query(Room.room_id)
        .filter(Room.room_id.like(f"{date_prefix}-%"))
        .order_by(Room.room_id.desc())
        .limit(1)
        .scalar()
    )
    if not latest:
        return 1
    try:
        return int(latest.split("-")[-1], 36) + 1
    except (ValueError, IndexError):
        return 1


def generate_room_id(db: Session, created_at: Optional[datetime] = None) -> str:
    """
    Construct a room identifier with the format WARYYYYMMDD-XXXX where the
    suffix is a zero-padded base36 sequence scoped to the creation day.
    """
    timestamp = (created_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
    date_prefix = f"{ROOM_ID_PREFIX}{timestamp:%Y%m%d}"
    sequence = _next_room_sequence(db, date_prefix)
    suffix = _format_base36(sequence).rjust(ROOM_ID_SUFFIX_WIDTH, "0")
    return f"{date_prefix}-{suffix}"
