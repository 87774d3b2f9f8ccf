import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Depends
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..config.loader import get_room_limits
from ..database import get_db
from ..errors import NotHost, PrivateRoom, RoomNotFound
from ..models.room import (
    ActionItem,
    MentorNote,
    Room,
    RoomMessage,
    RoomParticipant,
    RoomPoll,
    RoomResource,
)
from ..models.user import User
from ..schemas.room import (
    ActionItemResponse,
    ActionStatus,
    CrisisSituation,
    EndRoomRequest,
    MentorNoteResponse,
    MessageResponse,
    MessageType,
    ParticipantResponse,
    ParticipantRole,
    PollResponse,
    ResourceResponse,
    RoomCreate,
    RoomListResponse,
    RoomOutcome,
    RoomPhase,
    RoomSnapshot,
    RoomStatus,
    RoomSummary,
    UserSummary,
    VideoSessionResponse,
    ViewerContext,
)
from ..services import room_lifecycle
from ..services.action_items import ActionItemTracker
from ..services.membership import MembershipManager
from ..services.mentor_notes import MentorNotes, visible_notes
from ..services.message_log import MessageLog, summarize_reactions
from ..services.polls import PollBook, tally
from ..services.resource_board import ResourceBoard
from ..services.video import build_video_session
from ..utils.identifiers import generate_room_id

logger = logging.getLogger(__name__)


def _user_summary(user: Optional[User], fallback_id: str = "") -> UserSummary:
    if user is None:
        return UserSummary(user_id=fallback_id, login="unknown", display_name="Unknown")
    return UserSummary(
        user_id=user.user_id, login=user.login, display_name=user.display_name
    )


def serialize_message(
    message: RoomMessage, viewer_id: Optional[str] = None
) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        author=_user_summary(message.author, message.user_id),
        text=message.body,
        type=MessageType(message.message_type),
        created_at=room_lifecycle.as_utc(message.created_at),
        reactions=summarize_reactions(message, viewer_id),
    )


def serialize_action_item(item: ActionItem) -> ActionItemResponse:
    return ActionItemResponse(
        id=item.id,
        description=item.description,
        status=ActionStatus(item.status),
        created_by=item.created_by,
        created_at=room_lifecycle.as_utc(item.created_at),
        updated_at=room_lifecycle.as_utc(item.updated_at),
    )


def serialize_resource(resource: RoomResource) -> ResourceResponse:
    return ResourceResponse(
        id=resource.id,
        title=resource.title,
        url=resource.url,
        type=resource.resource_type,
        added_by=resource.added_by,
        added_at=room_lifecycle.as_utc(resource.added_at),
    )


def serialize_poll(poll: RoomPoll, viewer_id: Optional[str] = None) -> PollResponse:
    return PollResponse(**tally(poll, viewer_id))


def serialize_note(note: MentorNote) -> MentorNoteResponse:
    return MentorNoteResponse(
        id=note.id,
        author=_user_summary(note.author, note.author_id),
        note=note.note,
        is_private=bool(note.is_private),
        created_at=room_lifecycle.as_utc(note.created_at),
    )


class RoomManager:
    """Room repository: persistence plus the operations gated by lifecycle and membership."""

    def __init__(self, db: Session):
        self.db = db
        self.membership = MembershipManager(db)
        self.messages = MessageLog(db, self.membership)
        self.action_items = ActionItemTracker(db, self.membership)
        self.resources = ResourceBoard(db, self.membership)
        self.polls = PollBook(db, self.membership)
        self.notes = MentorNotes(db, self.membership)

    # --- Lookup and visibility ---

    def get_room(self, room_id: str) -> Room:
        room = self.db.query(Room).filter(Room.room_id == room_id).first()
        if room is None:
            raise RoomNotFound()
        return room

    def ensure_can_view(self, room: Room, viewer_id: Optional[str]) -> None:
        if room.is_private and not self.membership.is_participant(room, viewer_id):
            raise PrivateRoom()

    def get_visible_room(self, room_id: str, viewer_id: Optional[str]) -> Room:
        room = self.get_room(room_id)
        self.ensure_can_view(room, viewer_id)
        return room

    def _ensure_host(self, room: Room, user_id: str, action: str) -> None:
        if not self.membership.is_host(room, user_id):
            logger.info("User %s tried to %s room %s", user_id, action, room.room_id)
            raise NotHost(f"Only the host can {action} this war room")

    # --- Lifecycle ---

    def create_room(self, payload: RoomCreate, host_id: str) -> Room:
        limits = get_room_limits()
        now = room_lifecycle.utcnow()
        room = Room(
            room_id=generate_room_id(self.db, now),
            title=payload.title,
            startup_name=payload.startup_name,
            situation=CrisisSituation(payload.situation).value,
            description=payload.description,
            urgency_level=payload.urgency_level.value,
            status=RoomStatus.ACTIVE.value,
            is_live=False,
            scheduled_time=room_lifecycle.as_utc(payload.scheduled_time),
            max_participants=payload.max_participants
            or limits["default_max_participants"],
            is_private=payload.is_private,
            tags=list(payload.tags),
            host_id=host_id,
        )
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info("Room %s created by %s", room.room_id, host_id)
        return room

    def start_room(self, room_id: str, user_id: str) -> Room:
        room = self.get_room(room_id)
        room_lifecycle.ensure_open(room)
        self._ensure_host(room, user_id, "start")
        if room_lifecycle.start(room):
            self.membership.commit_write(room)
            self.db.refresh(room)
            logger.info("Room %s is live", room.room_id)
        return room

    def end_room(self, room_id: str, user_id: str, payload: EndRoomRequest) -> Room:
        room = self.get_room(room_id)
        room_lifecycle.ensure_open(room)
        self._ensure_host(room, user_id, "end")
        room_lifecycle.close(room, payload.outcome.model_dump(), payload.summary)
        self.db.commit()
        self.db.refresh(room)
        logger.info(
            "Room %s closed (resolved=%s)", room.room_id, payload.outcome.resolved
        )
        return room

    # --- Membership and content ---

    def join_room(self, room_id: str, user_id: str, role: ParticipantRole) -> Room:
        room = self.get_room(room_id)
        self.membership.join(room, user_id, role)
        return room

    def post_message(
        self, room_id: str, user_id: str, text: str, message_type: MessageType
    ) -> RoomMessage:
        room = self.get_room(room_id)
        return self.messages.post(room, user_id, text, message_type)

    def react_to_message(
        self, room_id: str, user_id: str, message_id: int, emoji: str
    ) -> RoomMessage:
        room = self.get_room(room_id)
        self.messages.react(room, user_id, message_id, emoji)
        return self.messages.get_message(room, message_id)

    def add_action_item(self, room_id: str, user_id: str, description: str) -> ActionItem:
        room = self.get_room(room_id)
        return self.action_items.add(room, user_id, description)

    def update_action_item(
        self, room_id: str, user_id: str, action_id: int, status: ActionStatus
    ) -> ActionItem:
        room = self.get_room(room_id)
        return self.action_items.set_status(room, user_id, action_id, status)

    def add_resource(
        self,
        room_id: str,
        user_id: str,
        url: str,
        title: Optional[str] = None,
        resource_type: Optional[str] = None,
    ) -> RoomResource:
        room = self.get_room(room_id)
        return self.resources.add(room, user_id, url, title, resource_type)

    def create_poll(self, room_id: str, user_id: str, question: str, options) -> RoomPoll:
        room = self.get_room(room_id)
        return self.polls.create(room, user_id, question, options)

    def vote_in_poll(
        self, room_id: str, user_id: str, poll_id: int, option_index: int
    ) -> RoomPoll:
        room = self.get_room(room_id)
        vote = self.polls.vote(room, user_id, poll_id, option_index)
        return vote.poll

    def add_mentor_note(
        self, room_id: str, user_id: str, note: str, is_private: bool = False
    ) -> MentorNote:
        room = self.get_room(room_id)
        return self.notes.add(room, user_id, note, is_private)

    def video_session(
        self, room_id: str, user_id: str, display_name: str
    ) -> VideoSessionResponse:
        room = self.get_room(room_id)
        self.membership.require_member(room, user_id)
        room_lifecycle.ensure_live(room)
        return VideoSessionResponse(**build_video_session(room.room_id, display_name))

    # --- Reads ---

    def list_rooms(
        self,
        viewer_id: Optional[str],
        status: Optional[RoomStatus] = None,
        is_live: Optional[bool] = None,
        situation: Optional[CrisisSituation] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> RoomListResponse:
        limits = get_room_limits()
        safe_limit = max(
            1, min(int(limit or limits["list_default_limit"]), limits["list_max_limit"])
        )
        safe_page = max(1, int(page or 1))

        query = self.db.query(Room)
        if status is not None:
            query = query.filter(Room.status == RoomStatus(status).value)
        if is_live is not None:
            query = query.filter(Room.is_live.is_(bool(is_live)))
        if situation is not None:
            query = query.filter(Room.situation == CrisisSituation(situation).value)

        member_rooms = select(RoomParticipant.room_id).where(
            RoomParticipant.user_id == viewer_id
        )
        query = query.filter(
            or_(
                Room.is_private.is_(False),
                Room.host_id == viewer_id,
                Room.room_id.in_(member_rooms),
            )
        )

        total = query.count()
        rooms = (
            query.order_by(Room.scheduled_time.desc(), Room.room_id.desc())
            .offset((safe_page - 1) * safe_limit)
            .limit(safe_limit)
            .all()
        )
        now = room_lifecycle.utcnow()
        return RoomListResponse(
            rooms=[self.build_summary(room, now) for room in rooms],
            current_page=safe_page,
            total_pages=math.ceil(total / safe_limit) if total else 0,
            total=total,
        )

    def _summary_fields(self, room: Room, now: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "room_id": room.room_id,
            "title": room.title,
            "startup_name": room.startup_name,
            "situation": room.situation,
            "urgency_level": room.urgency_level,
            "status": room.status,
            "is_live": bool(room.is_live),
            "phase": room_lifecycle.derive_phase(room),
            "display_live": room_lifecycle.is_display_live(room, now),
            "scheduled_time": room_lifecycle.as_utc(room.scheduled_time),
            "max_participants": room.max_participants,
            "participant_count": len(room.participants),
            "is_private": bool(room.is_private),
            "tags": list(room.tags or []),
            "host": _user_summary(room.host, room.host_id),
        }

    def build_summary(self, room: Room, now: Optional[datetime] = None) -> RoomSummary:
        return RoomSummary(**self._summary_fields(room, now))

    def build_viewer_context(self, room: Room, viewer_id: str) -> ViewerContext:
        role = self.membership.role_of(room, viewer_id)
        is_host = role == ParticipantRole.HOST
        is_participant = role is not None
        is_open = not room_lifecycle.is_closed(room)
        return ViewerContext(
            user_id=viewer_id,
            role=role,
            is_host=is_host,
            is_participant=is_participant,
            can_join=is_open
            and not is_participant
            and not room.is_private
            and len(room.participants) < room.max_participants,
            can_post=is_open and is_participant,
            can_end=is_open and is_host,
            can_start=is_host and room_lifecycle.derive_phase(room) == RoomPhase.SCHEDULED,
            can_join_video=is_open and is_participant and bool(room.is_live),
        )

    def build_snapshot(self, room: Room, viewer_id: str) -> RoomSnapshot:
        fields = self._summary_fields(room)
        outcome = RoomOutcome(**room.outcome) if isinstance(room.outcome, dict) else None
        return RoomSnapshot(
            **fields,
            description=room.description,
            started_at=room_lifecycle.as_utc(room.started_at),
            end_time=room_lifecycle.as_utc(room.end_time),
            summary=room.summary,
            outcome=outcome,
            participants=[
                ParticipantResponse(
                    user=_user_summary(participant.user, participant.user_id),
                    role=ParticipantRole(participant.role),
                    joined_at=room_lifecycle.as_utc(participant.joined_at),
                )
                for participant in room.participants
            ],
            messages=[serialize_message(message, viewer_id) for message in room.messages],
            action_items=[serialize_action_item(item) for item in room.action_items],
            resources=[serialize_resource(resource) for resource in room.resources],
            polls=[serialize_poll(poll, viewer_id) for poll in room.polls],
            mentor_notes=[serialize_note(note) for note in visible_notes(room, viewer_id)],
            viewer=self.build_viewer_context(room, viewer_id),
        )


def get_room_manager(db: Session = Depends(get_db)) -> RoomManager:
    """Dependency provider for RoomManager."""
    return RoomManager(db)
