"""
Async HTTP client for the war room API.

Requests are pre-validated with the same pydantic models the service uses, so
obviously bad input (an empty message, a short description) fails with
``RoomValidationError`` before any network call. Error responses are rebuilt
into the ``RoomError`` hierarchy by their ``code``; anything that means "try
again later" (connection failures, timeouts, 5xx) becomes ``TransientFetchError``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from warroom.config.loader import get_room_sync_settings
from warroom.errors import (
    RoomValidationError,
    TransientFetchError,
    error_from_response,
    validation_messages,
)
from warroom.schemas.room import (
    ActionItemCreate,
    ActionItemResponse,
    ActionItemUpdate,
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
    VideoSessionResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ROOMS_PATH = "/api/rooms"


def prevalidate(model_cls: Type[ModelT], **fields: Any) -> ModelT:
    try:
        return model_cls(**fields)
    except ValidationError as exc:
        raise RoomValidationError(validation_messages(exc.errors())) from exc


class RoomApiClient:
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout or get_room_sync_settings()["request_timeout_seconds"]
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=self.timeout, transport=transport
        )

    async def __aenter__(self) -> "RoomApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            raise TransientFetchError(f"Request timed out: {method} {path}") from exc
        except httpx.TransportError as exc:
            raise TransientFetchError(f"Connection failed: {exc}") from exc

        if response.status_code >= 500:
            raise TransientFetchError(
                f"Server error {response.status_code}", status_code=response.status_code
            )
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None
        if response.status_code >= 400:
            raise error_from_response(response.status_code, payload)
        return payload

    # --- Session ---

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/auth/token", json={"username": username, "password": password}
        )

    async def logout(self) -> None:
        await self._request("POST", "/api/auth/logout")

    # --- Rooms ---

    async def list_rooms(
        self,
        status: Optional[str] = None,
        is_live: Optional[bool] = None,
        situation: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> RoomListResponse:
        params: Dict[str, Any] = {"page": page}
        if status is not None:
            params["status"] = status
        if is_live is not None:
            params["is_live"] = "true" if is_live else "false"
        if situation is not None:
            params["situation"] = situation
        if limit is not None:
            params["limit"] = limit
        payload = await self._request("GET", f"{ROOMS_PATH}/", params=params)
        return RoomListResponse.model_validate(payload)

    async def get_room(self, room_id: str) -> RoomSnapshot:
        payload = await self._request("GET", f"{ROOMS_PATH}/{room_id}")
        return RoomSnapshot.model_validate(payload)

    async def create_room(self, **fields: Any) -> RoomSnapshot:
        body = prevalidate(RoomCreate, **fields)
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/", json=body.model_dump(mode="json")
        )
        return RoomSnapshot.model_validate(payload)

    async def join_room(self, room_id: str, role: str = "Supporter") -> RoomSnapshot:
        body = prevalidate(JoinRequest, role=role)
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/{room_id}/join", json=body.model_dump(mode="json")
        )
        return RoomSnapshot.model_validate(payload)

    async def start_room(self, room_id: str) -> RoomSnapshot:
        payload = await self._request("POST", f"{ROOMS_PATH}/{room_id}/start")
        return RoomSnapshot.model_validate(payload)

    async def end_room(
        self,
        room_id: str,
        outcome: Optional[Dict[str, Any]] = None,
        summary: Optional[str] = None,
    ) -> RoomSnapshot:
        body = prevalidate(EndRoomRequest, outcome=outcome or {}, summary=summary)
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/{room_id}/end", json=body.model_dump(mode="json")
        )
        return RoomSnapshot.model_validate(payload)

    async def send_message(
        self, room_id: str, text: str, type: str = "chat"
    ) -> MessageResponse:
        body = prevalidate(MessageCreate, text=text, type=type)
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/{room_id}/messages", json=body.model_dump(mode="json")
        )
        return MessageResponse.model_validate(payload)

    async def react(self, room_id: str, message_id: int, emoji: str) -> MessageResponse:
        body = prevalidate(ReactionRequest, emoji=emoji)
        payload = await self._request(
            "POST",
            f"{ROOMS_PATH}/{room_id}/messages/{message_id}/react",
            json=body.model_dump(mode="json"),
        )
        return MessageResponse.model_validate(payload)

    async def add_action_item(self, room_id: str, description: str) -> ActionItemResponse:
        body = prevalidate(ActionItemCreate, description=description)
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/{room_id}/actions", json=body.model_dump(mode="json")
        )
        return ActionItemResponse.model_validate(payload)

    async def update_action_item(
        self, room_id: str, action_id: int, status: str
    ) -> ActionItemResponse:
        body = prevalidate(ActionItemUpdate, status=status)
        payload = await self._request(
            "PUT",
            f"{ROOMS_PATH}/{room_id}/actions/{action_id}",
            json=body.model_dump(mode="json"),
        )
        return ActionItemResponse.model_validate(payload)

    async def add_resource(
        self,
        room_id: str,
        url: str,
        title: Optional[str] = None,
        type: Optional[str] = None,
    ) -> ResourceResponse:
        body = prevalidate(ResourceCreate, url=url, title=title, type=type)
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/{room_id}/resources", json=body.model_dump(mode="json")
        )
        return ResourceResponse.model_validate(payload)

    async def create_poll(self, room_id: str, question: str, options) -> PollResponse:
        body = prevalidate(PollCreate, question=question, options=list(options))
        payload = await self._request(
            "POST", f"{ROOMS_PATH}/{room_id}/polls", json=body.model_dump(mode="json")
        )
        return PollResponse.model_validate(payload)

    async def vote(self, room_id: str, poll_id: int, option_index: int) -> PollResponse:
        body = prevalidate(PollVoteRequest, option_index=option_index)
        payload = await self._request(
            "POST",
            f"{ROOMS_PATH}/{room_id}/polls/{poll_id}/vote",
            json=body.model_dump(mode="json"),
        )
        return PollResponse.model_validate(payload)

    async def add_mentor_note(
        self, room_id: str, note: str, is_private: bool = False
    ) -> MentorNoteResponse:
        body = prevalidate(MentorNoteCreate, note=note, is_private=is_private)
        payload = await self._request(
            "POST",
            f"{ROOMS_PATH}/{room_id}/mentor-notes",
            json=body.model_dump(mode="json"),
        )
        return MentorNoteResponse.model_validate(payload)

    async def get_video_session(self, room_id: str) -> VideoSessionResponse:
        payload = await self._request("GET", f"{ROOMS_PATH}/{room_id}/video")
        return VideoSessionResponse.model_validate(payload)
