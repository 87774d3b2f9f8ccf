from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warroom.errors import (
    AlreadyJoined,
    CapacityExceeded,
    NotAMember,
    PrivateRoom,
    RoomClosed,
    RoomValidationError,
)
from warroom.models.room import Room, RoomParticipant
from warroom.schemas.room import ParticipantRole, RoomStatus
from warroom.services import room_lifecycle

logger = logging.getLogger(__name__)


def required_text(
    value: Optional[str], field_name: str, max_length: Optional[int] = None
) -> str:
    """Trim a user-supplied text field; blank or oversized values are rejected."""
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise RoomValidationError([f"{field_name}: {field_name} is required"])
    if max_length is not None and len(text) > max_length:
        raise RoomValidationError(
            [f"{field_name}: must be at most {max_length} characters"]
        )
    return text


class MembershipManager:
    """Who may read and write a room, and under which role."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def is_host(room: Room, user_id: Optional[str]) -> bool:
        return bool(user_id) and room.host_id == user_id

    def find_participant(
        self, room: Room, user_id: Optional[str]
    ) -> Optional[RoomParticipant]:
        if not user_id:
            return None
        return (
            self.db.query(RoomParticipant)
            .filter(
                RoomParticipant.room_id == room.room_id,
                RoomParticipant.user_id == user_id,
            )
            .first()
        )

    def participant_count(self, room: Room) -> int:
        return (
            self.db.query(func.count(RoomParticipant.id))
            .filter(RoomParticipant.room_id == room.room_id)
            .scalar()
            or 0
        )

    def is_participant(self, room: Room, user_id: Optional[str]) -> bool:
        return self.is_host(room, user_id) or self.find_participant(
            room, user_id
        ) is not None

    def role_of(self, room: Room, user_id: Optional[str]) -> Optional[ParticipantRole]:
        if self.is_host(room, user_id):
            return ParticipantRole.HOST
        participant = self.find_participant(room, user_id)
        if participant is None:
            return None
        return ParticipantRole(participant.role)

    def require_member(self, room: Room, user_id: Optional[str]) -> None:
        """Gate shared by every content write: open room first, then membership."""
        room_lifecycle.ensure_open(room)
        if not self.is_participant(room, user_id):
            logger.info(
                "Rejected write to room %s by non-member %s", room.room_id, user_id
            )
            raise NotAMember()

    def current_status(self, room: Room) -> Optional[str]:
        return (
            self.db.query(Room.status).filter(Room.room_id == room.room_id).scalar()
        )

    def commit_write(self, room: Room) -> None:
        """
        Commit pending writes to ``room`` unless it was closed after it was
        loaded. The flush takes the write lock, so the status read afterwards
        is the committed one.
        """
        self.db.flush()
        if self.current_status(room) == RoomStatus.CLOSED.value:
            self.db.rollback()
            logger.info("Room %s closed before the write committed", room.room_id)
            raise RoomClosed()
        self.db.commit()

    def join(
        self,
        room: Room,
        user_id: str,
        role: ParticipantRole = ParticipantRole.SUPPORTER,
    ) -> RoomParticipant:
        room_lifecycle.ensure_open(room)
        if self.is_participant(room, user_id):
            raise AlreadyJoined()
        if room.is_private:
            raise PrivateRoom()
        if self.participant_count(room) >= room.max_participants:
            logger.info("Room %s is full (%s)", room.room_id, room.max_participants)
            raise CapacityExceeded()

        participant = RoomParticipant(
            room_id=room.room_id, user_id=user_id, role=ParticipantRole(role).value
        )
        self.db.add(participant)
        try:
            self.db.flush()
            # Concurrent joins can both pass the count check; the flush holds
            # the write lock, so recount before committing.
            if self.participant_count(room) > room.max_participants:
                self.db.rollback()
                raise CapacityExceeded()
            self.commit_write(room)
        except IntegrityError:
            self.db.rollback()
            raise AlreadyJoined()
        self.db.refresh(participant)
        logger.info(
            "User %s joined room %s as %s", user_id, room.room_id, participant.role
        )
        return participant
