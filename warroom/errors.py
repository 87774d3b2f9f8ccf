"""
War room error taxonomy.

Every rejection a room operation can produce is a ``RoomError``: an
``HTTPException`` carrying a stable machine ``code`` next to the user-facing
``detail``. The service renders both; the async client rebuilds the same
exception from the response body so callers handle one hierarchy on either
side of the wire.
"""

from typing import Any, Dict, List, Optional, Type

from fastapi import HTTPException, status


class RoomError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "room_error"
    default_detail = "The war room request could not be completed."

    def __init__(self, detail: Optional[Any] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail if detail is not None else self.default_detail,
            headers=headers,
        )

    @property
    def message(self) -> str:
        if isinstance(self.detail, list):
            return "; ".join(str(item) for item in self.detail)
        return str(self.detail)


class NotFound(RoomError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class RoomNotFound(NotFound):
    default_detail = "War room not found"


class ActionItemNotFound(NotFound):
    default_detail = "Action item not found"


class MessageNotFound(NotFound):
    default_detail = "Message not found"


class PollNotFound(NotFound):
    default_detail = "Poll not found"


class RoomClosed(RoomError):
    status_code = status.HTTP_409_CONFLICT
    code = "room_closed"
    default_detail = "This session has ended."


class NotAMember(RoomError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_a_member"
    default_detail = "Join this war room to take part."


class AlreadyJoined(RoomError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_joined"
    default_detail = "You are already a participant in this war room"


class CapacityExceeded(RoomError):
    status_code = status.HTTP_409_CONFLICT
    code = "capacity_exceeded"
    default_detail = "War room has reached maximum capacity"


class NotHost(RoomError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_host"
    default_detail = "Only the host can do that"


class PrivateRoom(RoomError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "private_room"
    default_detail = "This war room is private"


class RoleNotPermitted(RoomError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "role_not_permitted"
    default_detail = "Only mentors and experts can add notes"


class RoomNotLive(RoomError):
    status_code = status.HTTP_409_CONFLICT
    code = "room_not_live"
    default_detail = "This session is not live yet"


class RoomValidationError(RoomError):
    status_code = 422
    code = "validation_error"
    default_detail = "Invalid request"


class NotAuthenticated(RoomError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"
    default_detail = "Not authenticated to access this API endpoint."


class TransientFetchError(Exception):
    """Network failure, timeout or server error. Retried on the next poll tick."""

    code = "transient"

    def __init__(
        self,
        message: str = "The war room could not be reached.",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


_ERRORS_BY_CODE: Dict[str, Type[RoomError]] = {
    cls.code: cls
    for cls in (
        NotFound,
        RoomClosed,
        NotAMember,
        AlreadyJoined,
        CapacityExceeded,
        NotHost,
        PrivateRoom,
        RoleNotPermitted,
        RoomNotLive,
        RoomValidationError,
        NotAuthenticated,
    )
}


def validation_messages(errors: List[Dict[str, Any]]) -> List[str]:
    """Flatten pydantic error entries to plain, serializable messages."""
    messages = []
    for err in errors:
        location = ".".join(
            str(part) for part in err.get("loc", ()) if part not in {"body", "query"}
        )
        text = str(err.get("msg", "Invalid value"))
        messages.append(f"{location}: {text}" if location else text)
    return messages


def error_from_response(status_code: int, payload: Any) -> RoomError:
    """Rebuild the typed error from a ``{"detail", "code"}`` response body."""
    detail = None
    code = None
    if isinstance(payload, dict):
        detail = payload.get("detail")
        code = payload.get("code")
    error_cls = _ERRORS_BY_CODE.get(code or "")
    if error_cls is None:
        if status_code == status.HTTP_404_NOT_FOUND:
            error_cls = NotFound
        elif status_code == status.HTTP_401_UNAUTHORIZED:
            error_cls = NotAuthenticated
        elif status_code == 422:
            error_cls = RoomValidationError
        else:
            error = RoomError(detail)
            error.status_code = status_code
            return error
    return error_cls(detail)
