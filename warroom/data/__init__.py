"""
Data access layer: the room repository and user accounts.
"""

from .user_manager import UserManager
from .room_manager import RoomManager

__all__ = ["UserManager", "RoomManager"]
