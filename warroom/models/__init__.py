# Import models to make them accessible via warroom.models
# and ensure they are registered with SQLAlchemy's Base metadata
from .user import User, UserRole
from .room import (
    Room,
    RoomParticipant,
    RoomMessage,
    MessageReaction,
    ActionItem,
    RoomResource,
    RoomPoll,
    PollVote,
    MentorNote,
)

__all__ = [
    "User",
    "UserRole",
    "Room",
    "RoomParticipant",
    "RoomMessage",
    "MessageReaction",
    "ActionItem",
    "RoomResource",
    "RoomPoll",
    "PollVote",
    "MentorNote",
]
