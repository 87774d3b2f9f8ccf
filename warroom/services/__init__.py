"""War room services: lifecycle, membership and the room's shared collections."""

from . import room_lifecycle  # noqa: F401
from .membership import MembershipManager
from .message_log import MessageLog
from .action_items import ActionItemTracker
from .resource_board import ResourceBoard
from .polls import PollBook
from .mentor_notes import MentorNotes

__all__ = [
    "room_lifecycle",
    "MembershipManager",
    "MessageLog",
    "ActionItemTracker",
    "ResourceBoard",
    "PollBook",
    "MentorNotes",
]
