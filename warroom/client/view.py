"""
Client-side view model for a single war room.

``RoomView`` keeps the latest server snapshot, refreshed by a
``RoomSyncPoller``, plus the purely local state a UI needs on top of it: which
controls are waiting on a request, whether the user is in the video call, and
the last user-visible notice. Mutations apply their result to the local
snapshot right away and then force a refresh; whatever the server returns
next replaces local state wholesale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from warroom.client.api import RoomApiClient
from warroom.client.poller import RoomSyncPoller
from warroom.errors import RoomClosed, RoomError, TransientFetchError
from warroom.schemas.room import (
    ActionStatus,
    MessageType,
    ParticipantRole,
    RoomSnapshot,
    RoomStatus,
    VideoSessionResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    code: str
    message: str
    level: str = "error"
    action: Optional[str] = None


# code -> (message, level, call to action)
NOTICES: Dict[str, tuple] = {
    "room_closed": ("This session has ended.", "info", None),
    "not_a_member": ("Join this war room to take part.", "info", "join"),
    "already_joined": ("You are already a participant in this war room.", "info", None),
    "capacity_exceeded": ("This war room is full.", "error", None),
    "not_host": ("Only the host can do that.", "error", None),
    "private_room": ("This war room is private.", "error", None),
    "role_not_permitted": ("Only mentors and experts can add notes.", "error", None),
    "room_not_live": ("The session has not started yet.", "info", None),
    "not_found": ("That item no longer exists.", "error", None),
    "not_authenticated": ("Please sign in again.", "error", "login"),
    "validation_error": ("Please check your input.", "error", None),
    "transient": ("Connection problem. Retrying shortly.", "warning", None),
}


def notice_for(error: Exception) -> Notice:
    code = getattr(error, "code", "") or ""
    message, level, action = NOTICES.get(
        code, ("Something went wrong. Please try again.", "error", None)
    )
    if code == "validation_error" and isinstance(error, RoomError):
        message = error.message or message
    return Notice(code=code or "error", message=message, level=level, action=action)


class RoomView:
    def __init__(
        self,
        api: RoomApiClient,
        room_id: str,
        user_id: Optional[str] = None,
        interval: Optional[float] = None,
    ):
        self.api = api
        self.room_id = room_id
        self.user_id = user_id
        self.snapshot: Optional[RoomSnapshot] = None
        self.pending: Set[str] = set()
        self.in_video = False
        self.video_session: Optional[VideoSessionResponse] = None
        self.notice: Optional[Notice] = None
        self.poller: RoomSyncPoller[RoomSnapshot] = RoomSyncPoller(
            lambda: api.get_room(room_id),
            self._apply_snapshot,
            interval=interval,
            on_error=self._on_poll_error,
        )

    # --- Lifecycle ---

    async def open(self) -> Optional[RoomSnapshot]:
        await self.poller.refresh_now()
        self.poller.start(immediate=False)
        return self.snapshot

    async def close(self) -> None:
        await self.poller.stop()
        self.leave_video()

    async def refresh(self) -> bool:
        return await self.poller.refresh_now()

    # --- Derived state ---

    @property
    def is_closed(self) -> bool:
        return self.snapshot is not None and self.snapshot.status == RoomStatus.CLOSED

    @property
    def is_member(self) -> bool:
        return self.snapshot is not None and self.snapshot.viewer.is_participant

    def is_pending(self, op: str) -> bool:
        return op in self.pending

    def dismiss_notice(self) -> None:
        self.notice = None

    def _apply_snapshot(self, snapshot: RoomSnapshot) -> None:
        self.snapshot = snapshot
        if self.user_id is None:
            self.user_id = snapshot.viewer.user_id
        if snapshot.status == RoomStatus.CLOSED:
            self.leave_video()
        if self.notice is not None and self.notice.code == "transient":
            self.notice = None

    def _on_poll_error(self, error: Exception) -> None:
        if isinstance(error, (RoomError, TransientFetchError)):
            self.notice = notice_for(error)

    def _patch(self, **changes: Any) -> None:
        if self.snapshot is not None:
            self.snapshot = self.snapshot.model_copy(update=changes)

    # --- Mutations ---

    async def _mutate(
        self,
        op: str,
        call: Callable[[], Awaitable[Any]],
        requires_open: bool = True,
    ) -> Any:
        if op in self.pending:
            logger.debug("Ignoring duplicate %s while a request is outstanding", op)
            return None
        if requires_open and self.is_closed:
            self.notice = notice_for(RoomClosed())
            return None

        self.pending.add(op)
        try:
            result = await call()
        except (RoomError, TransientFetchError) as exc:
            logger.info("Room %s: %s rejected (%s)", self.room_id, op, exc.code)
            self.notice = notice_for(exc)
            return None
        finally:
            self.pending.discard(op)

        self.notice = None
        await self.poller.refresh_now()
        return result

    async def join(self, role: ParticipantRole | str = ParticipantRole.SUPPORTER):
        role_value = role.value if isinstance(role, ParticipantRole) else role

        async def call():
            snapshot = await self.api.join_room(self.room_id, role_value)
            self.snapshot = snapshot
            return snapshot

        return await self._mutate("join", call)

    async def send_message(self, text: str, type: MessageType | str = MessageType.CHAT):
        type_value = type.value if isinstance(type, MessageType) else type

        async def call():
            message = await self.api.send_message(self.room_id, text, type_value)
            if self.snapshot is not None:
                self._patch(messages=[*self.snapshot.messages, message])
            return message

        return await self._mutate("message", call)

    async def react(self, message_id: int, emoji: str):
        return await self._mutate(
            f"react:{message_id}:{emoji}",
            lambda: self.api.react(self.room_id, message_id, emoji),
        )

    async def add_action_item(self, description: str):
        async def call():
            item = await self.api.add_action_item(self.room_id, description)
            if self.snapshot is not None:
                self._patch(action_items=[*self.snapshot.action_items, item])
            return item

        return await self._mutate("action:add", call)

    async def set_action_status(self, action_id: int, status: ActionStatus | str):
        status_value = status.value if isinstance(status, ActionStatus) else status

        async def call():
            item = await self.api.update_action_item(self.room_id, action_id, status_value)
            if self.snapshot is not None:
                self._patch(
                    action_items=[
                        item if existing.id == item.id else existing
                        for existing in self.snapshot.action_items
                    ]
                )
            return item

        return await self._mutate(f"action:{action_id}", call)

    async def toggle_action(self, action_id: int):
        current = None
        if self.snapshot is not None:
            current = next(
                (item for item in self.snapshot.action_items if item.id == action_id),
                None,
            )
        if current is not None and current.status == ActionStatus.COMPLETED:
            target = ActionStatus.PENDING
        else:
            target = ActionStatus.COMPLETED
        return await self.set_action_status(action_id, target)

    async def add_resource(
        self, url: str, title: Optional[str] = None, type: Optional[str] = None
    ):
        async def call():
            resource = await self.api.add_resource(self.room_id, url, title, type)
            if self.snapshot is not None:
                self._patch(resources=[*self.snapshot.resources, resource])
            return resource

        return await self._mutate("resource", call)

    async def create_poll(self, question: str, options):
        return await self._mutate(
            "poll:create",
            lambda: self.api.create_poll(self.room_id, question, options),
        )

    async def vote(self, poll_id: int, option_index: int):
        return await self._mutate(
            f"poll:{poll_id}",
            lambda: self.api.vote(self.room_id, poll_id, option_index),
        )

    async def add_note(self, note: str, is_private: bool = False):
        return await self._mutate(
            "note",
            lambda: self.api.add_mentor_note(self.room_id, note, is_private),
        )

    async def start_room(self):
        return await self._mutate("start", lambda: self.api.start_room(self.room_id))

    async def end_room(
        self, outcome: Optional[Dict[str, Any]] = None, summary: Optional[str] = None
    ):
        return await self._mutate(
            "end", lambda: self.api.end_room(self.room_id, outcome, summary)
        )

    # --- Video ---

    async def join_video(self) -> Optional[VideoSessionResponse]:
        async def call():
            session = await self.api.get_video_session(self.room_id)
            self.video_session = session
            self.in_video = True
            return session

        return await self._mutate("video", call)

    def leave_video(self) -> None:
        self.in_video = False
        self.video_session = None
