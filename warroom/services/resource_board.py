from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from warroom.models.room import Room, RoomResource
from warroom.services.membership import MembershipManager, required_text


class ResourceBoard:
    """Shared links of a room. URLs are stored as given, never fetched."""

    def __init__(self, db: Session, membership: Optional[MembershipManager] = None):
        self.db = db
        self.membership = membership or MembershipManager(db)

    def add(
        self,
        room: Room,
        author_id: str,
        url: str,
        title: Optional[str] = None,
        resource_type: Optional[str] = None,
    ) -> RoomResource:
        self.membership.require_member(room, author_id)
        url = required_text(url, "url", 2048)
        resource = RoomResource(
            room_id=room.room_id,
            title=_optional_text(title),
            url=url,
            resource_type=_optional_text(resource_type),
            added_by=author_id,
        )
        room.resources.append(resource)
        self.membership.commit_write(room)
        self.db.refresh(resource)
        return resource


def _optional_text(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    return value
