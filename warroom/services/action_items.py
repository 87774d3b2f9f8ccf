from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from warroom.errors import ActionItemNotFound
from warroom.models.room import ActionItem, Room
from warroom.schemas.room import ActionStatus
from warroom.services.membership import MembershipManager, required_text

logger = logging.getLogger(__name__)


class ActionItemTracker:
    def __init__(self, db: Session, membership: Optional[MembershipManager] = None):
        self.db = db
        self.membership = membership or MembershipManager(db)

    def add(self, room: Room, author_id: str, description: str) -> ActionItem:
        self.membership.require_member(room, author_id)
        text = required_text(description, "description", 1000)
        item = ActionItem(
            room_id=room.room_id,
            description=text,
            status=ActionStatus.PENDING.value,
            created_by=author_id,
        )
        room.action_items.append(item)
        self.membership.commit_write(room)
        self.db.refresh(item)
        return item

    def get(self, room: Room, action_id: int) -> ActionItem:
        item = (
            self.db.query(ActionItem)
            .filter(ActionItem.id == action_id, ActionItem.room_id == room.room_id)
            .first()
        )
        if item is None:
            raise ActionItemNotFound()
        return item

    def set_status(
        self, room: Room, user_id: str, action_id: int, status: ActionStatus
    ) -> ActionItem:
        """Set an absolute status; repeating the same update is a no-op."""
        self.membership.require_member(room, user_id)
        item = self.get(room, action_id)
        target = ActionStatus(status).value
        if item.status != target:
            item.status = target
            self.membership.commit_write(room)
            self.db.refresh(item)
            logger.info(
                "Action item %s in room %s set to %s", item.id, room.room_id, target
            )
        return item

    def toggle(self, room: Room, user_id: str, action_id: int) -> ActionItem:
        item = self.get(room, action_id)
        target = (
            ActionStatus.PENDING
            if item.status == ActionStatus.COMPLETED.value
            else ActionStatus.COMPLETED
        )
        return self.set_status(room, user_id, action_id, target)
