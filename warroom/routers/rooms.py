from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from warroom.auth.auth import get_current_active_user
from warroom.data.room_manager import (
    RoomManager,
    get_room_manager,
    serialize_action_item,
    serialize_message,
    serialize_note,
    serialize_poll,
    serialize_resource,
)
from warroom.schemas.room import (
    ActionItemCreate,
    ActionItemResponse,
    ActionItemUpdate,
    CrisisSituation,
    EndRoomRequest,
    JoinRequest,
    MentorNoteCreate,
    MentorNoteResponse,
    MessageCreate,
    MessageResponse,
    PollCreate,
    PollResponse,
    PollVoteRequest,
    ReactionRequest,
    ResourceCreate,
    ResourceResponse,
    RoomCreate,
    RoomListResponse,
    RoomSnapshot,
    RoomStatus,
    VideoSessionResponse,
)
from warroom.schemas.user import User as UserSchema

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@router.get("/", response_model=RoomListResponse)
async def list_rooms(
    status_filter: Optional[RoomStatus] = Query(None, alias="status"),
    is_live: Optional[bool] = Query(None),
    situation: Optional[CrisisSituation] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> RoomListResponse:
    return room_manager.list_rooms(
        current_user.user_id,
        status=status_filter,
        is_live=is_live,
        situation=situation,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=RoomSnapshot, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: RoomCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> RoomSnapshot:
    room = room_manager.create_room(payload, current_user.user_id)
    return room_manager.build_snapshot(room, current_user.user_id)


@router.get("/{room_id}", response_model=RoomSnapshot)
async def get_room(
    room_id: str,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> RoomSnapshot:
    room = room_manager.get_visible_room(room_id, current_user.user_id)
    return room_manager.build_snapshot(room, current_user.user_id)


@router.post("/{room_id}/join", response_model=RoomSnapshot)
async def join_room(
    room_id: str,
    payload: Optional[JoinRequest] = None,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> RoomSnapshot:
    request = payload or JoinRequest()
    room = room_manager.join_room(room_id, current_user.user_id, request.role)
    return room_manager.build_snapshot(room, current_user.user_id)


@router.post("/{room_id}/start", response_model=RoomSnapshot)
async def start_room(
    room_id: str,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> RoomSnapshot:
    room = room_manager.start_room(room_id, current_user.user_id)
    return room_manager.build_snapshot(room, current_user.user_id)


@router.post("/{room_id}/end", response_model=RoomSnapshot)
async def end_room(
    room_id: str,
    payload: Optional[EndRoomRequest] = None,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> RoomSnapshot:
    room = room_manager.end_room(
        room_id, current_user.user_id, payload or EndRoomRequest()
    )
    return room_manager.build_snapshot(room, current_user.user_id)


@router.post(
    "/{room_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    room_id: str,
    payload: MessageCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> MessageResponse:
    message = room_manager.post_message(
        room_id, current_user.user_id, payload.text, payload.type
    )
    return serialize_message(message, current_user.user_id)


@router.post("/{room_id}/messages/{message_id}/react", response_model=MessageResponse)
async def react_to_message(
    room_id: str,
    message_id: int,
    payload: ReactionRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> MessageResponse:
    message = room_manager.react_to_message(
        room_id, current_user.user_id, message_id, payload.emoji
    )
    return serialize_message(message, current_user.user_id)


@router.post(
    "/{room_id}/actions",
    response_model=ActionItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_action_item(
    room_id: str,
    payload: ActionItemCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> ActionItemResponse:
    item = room_manager.add_action_item(
        room_id, current_user.user_id, payload.description
    )
    return serialize_action_item(item)


@router.put("/{room_id}/actions/{action_id}", response_model=ActionItemResponse)
async def update_action_item(
    room_id: str,
    action_id: int,
    payload: ActionItemUpdate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> ActionItemResponse:
    item = room_manager.update_action_item(
        room_id, current_user.user_id, action_id, payload.status
    )
    return serialize_action_item(item)


@router.post(
    "/{room_id}/resources",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_resource(
    room_id: str,
    payload: ResourceCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> ResourceResponse:
    resource = room_manager.add_resource(
        room_id, current_user.user_id, payload.url, payload.title, payload.type
    )
    return serialize_resource(resource)


@router.post(
    "/{room_id}/polls",
    response_model=PollResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_poll(
    room_id: str,
    payload: PollCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> PollResponse:
    poll = room_manager.create_poll(
        room_id, current_user.user_id, payload.question, payload.options
    )
    return serialize_poll(poll, current_user.user_id)


@router.post("/{room_id}/polls/{poll_id}/vote", response_model=PollResponse)
async def vote_in_poll(
    room_id: str,
    poll_id: int,
    payload: PollVoteRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> PollResponse:
    poll = room_manager.vote_in_poll(
        room_id, current_user.user_id, poll_id, payload.option_index
    )
    return serialize_poll(poll, current_user.user_id)


@router.post(
    "/{room_id}/mentor-notes",
    response_model=MentorNoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_mentor_note(
    room_id: str,
    payload: MentorNoteCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> MentorNoteResponse:
    note = room_manager.add_mentor_note(
        room_id, current_user.user_id, payload.note, payload.is_private
    )
    return serialize_note(note)


@router.get("/{room_id}/video", response_model=VideoSessionResponse)
async def get_video_session(
    room_id: str,
    current_user: UserSchema = Depends(get_current_active_user),
    room_manager: RoomManager = Depends(get_room_manager),
) -> VideoSessionResponse:
    return room_manager.video_session(
        room_id, current_user.user_id, current_user.display_name or current_user.login
    )
