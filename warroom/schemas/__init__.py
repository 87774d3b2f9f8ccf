from .schemas import LoginResponse, MessageOut
from .user import User, UserCreate
from .room import (
    ActionItemCreate,
    ActionItemUpdate,
    EndRoomRequest,
    JoinRequest,
    MentorNoteCreate,
    MessageCreate,
    PollCreate,
    PollVoteRequest,
    ReactionRequest,
    ResourceCreate,
    RoomCreate,
    RoomListResponse,
    RoomOutcome,
    RoomSnapshot,
    RoomSummary,
    VideoSessionResponse,
)

__all__ = [
    "LoginResponse",
    "MessageOut",
    "User",
    "UserCreate",
    "ActionItemCreate",
    "ActionItemUpdate",
    "EndRoomRequest",
    "JoinRequest",
    "MentorNoteCreate",
    "MessageCreate",
    "PollCreate",
    "PollVoteRequest",
    "ReactionRequest",
    "ResourceCreate",
    "RoomCreate",
    "RoomListResponse",
    "RoomOutcome",
    "RoomSnapshot",
    "RoomSummary",
    "VideoSessionResponse",
]
