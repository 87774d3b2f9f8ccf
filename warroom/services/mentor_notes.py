from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from warroom.errors import RoleNotPermitted
from warroom.models.room import MentorNote, Room
from warroom.schemas.room import ParticipantRole
from warroom.services.membership import MembershipManager, required_text

NOTE_ROLES = {ParticipantRole.MENTOR, ParticipantRole.EXPERT}


class MentorNotes:
    def __init__(self, db: Session, membership: Optional[MembershipManager] = None):
        self.db = db
        self.membership = membership or MembershipManager(db)

    def add(
        self, room: Room, author_id: str, note: str, is_private: bool = False
    ) -> MentorNote:
        self.membership.require_member(room, author_id)
        if self.membership.role_of(room, author_id) not in NOTE_ROLES:
            raise RoleNotPermitted()
        note = required_text(note, "note", 5000)
        entry = MentorNote(
            room_id=room.room_id,
            author_id=author_id,
            note=note,
            is_private=bool(is_private),
        )
        room.mentor_notes.append(entry)
        self.membership.commit_write(room)
        self.db.refresh(entry)
        return entry


def visible_notes(room: Room, viewer_id: Optional[str]) -> List[MentorNote]:
    """Private notes are shown to their author and the host only."""
    is_host = bool(viewer_id) and room.host_id == viewer_id
    return [
        note
        for note in room.mentor_notes
        if not note.is_private or is_host or note.author_id == viewer_id
    ]
