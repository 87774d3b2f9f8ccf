from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from warroom.errors import MessageNotFound
from warroom.models.room import MessageReaction, Room, RoomMessage
from warroom.schemas.room import MessageType
from warroom.services import room_lifecycle
from warroom.config.loader import get_room_limits
from warroom.services.membership import MembershipManager, required_text

logger = logging.getLogger(__name__)


class MessageLog:
    """Append-only, typed message log of a room."""

    def __init__(self, db: Session, membership: Optional[MembershipManager] = None):
        self.db = db
        self.membership = membership or MembershipManager(db)

    def post(
        self,
        room: Room,
        author_id: str,
        text: str,
        message_type: MessageType = MessageType.CHAT,
    ) -> RoomMessage:
        self.membership.require_member(room, author_id)
        body = required_text(
            text, "text", get_room_limits()["message_max_length"]
        )
        message = RoomMessage(
            room_id=room.room_id,
            user_id=author_id,
            body=body,
            message_type=MessageType(message_type).value,
            created_at=room_lifecycle.utcnow(),
        )
        room.messages.append(message)
        self.membership.commit_write(room)
        self.db.refresh(message)
        logger.debug("Message %s appended to room %s", message.id, room.room_id)
        return message

    def list(self, room: Room) -> List[RoomMessage]:
        return list(room.messages)

    def get_message(self, room: Room, message_id: int) -> RoomMessage:
        message = (
            self.db.query(RoomMessage)
            .filter(RoomMessage.id == message_id, RoomMessage.room_id == room.room_id)
            .first()
        )
        if message is None:
            raise MessageNotFound()
        return message

    def react(self, room: Room, user_id: str, message_id: int, emoji: str) -> bool:
        """Toggle a reaction. Returns True when the reaction is now present."""
        self.membership.require_member(room, user_id)
        emoji = required_text(emoji, "emoji", 32)
        message = self.get_message(room, message_id)
        existing = next(
            (
                reaction
                for reaction in message.reactions
                if reaction.user_id == user_id and reaction.emoji == emoji
            ),
            None,
        )
        if existing is not None:
            message.reactions.remove(existing)
            active = False
        else:
            message.reactions.append(
                MessageReaction(message_id=message.id, user_id=user_id, emoji=emoji)
            )
            active = True
        self.membership.commit_write(room)
        return active


def summarize_reactions(
    message: RoomMessage, viewer_id: Optional[str] = None
) -> List[Dict[str, object]]:
    grouped: "OrderedDict[str, Dict[str, object]]" = OrderedDict()
    for reaction in message.reactions:
        entry = grouped.setdefault(
            reaction.emoji, {"emoji": reaction.emoji, "count": 0, "reacted_by_me": False}
        )
        entry["count"] = int(entry["count"]) + 1
        if viewer_id and reaction.user_id == viewer_id:
            entry["reacted_by_me"] = True
    return list(grouped.values())
