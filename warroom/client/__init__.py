from .api import RoomApiClient
from .poller import RoomSyncPoller
from .view import Notice, RoomView, notice_for

__all__ = ["RoomApiClient", "RoomSyncPoller", "RoomView", "Notice", "notice_for"]
