from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from warroom.config.loader import get_room_limits


class CrisisSituation(str, Enum):
    RUNNING_OUT_OF_CASH = "Running out of cash"
    LOSING_KEY_TEAM_MEMBERS = "Losing key team members"
    PRODUCT_FAILURE = "Product failure"
    LEGAL_ISSUES = "Legal issues"
    INVESTOR_PROBLEMS = "Investor problems"
    MARKET_COLLAPSE = "Market collapse"
    COMPETITION_CRISIS = "Competition crisis"
    OPERATIONAL_BREAKDOWN = "Operational breakdown"
    CUSTOMER_CHURN = "Customer churn"
    PIVOT_DECISION = "Pivot decision"
    OTHER_CRISIS = "Other crisis"


class UrgencyLevel(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RoomStatus(str, Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"


class RoomPhase(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    CLOSED = "closed"


class ParticipantRole(str, Enum):
    HOST = "Host"
    MENTOR = "Mentor"
    INVESTOR = "Investor"
    FOUNDER = "Founder"
    EXPERT = "Expert"
    SUPPORTER = "Supporter"


class MessageType(str, Enum):
    CHAT = "chat"
    ADVICE = "advice"
    QUESTION = "question"
    RESOURCE = "resource"
    ACTION = "action"


class ActionStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


def _strip_required(value, field_name: str):
    if value is None:
        raise ValueError(f"{field_name} is required")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError(f"{field_name} is required")
    return value


# --- Requests ---


class RoomCreate(BaseModel):
    title: str = Field(..., max_length=200)
    startup_name: str = Field(..., max_length=200)
    situation: CrisisSituation
    description: str
    urgency_level: UrgencyLevel = UrgencyLevel.HIGH
    scheduled_time: datetime
    max_participants: Optional[int] = None
    is_private: bool = False
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "startup_name", mode="before")
    @classmethod
    def require_text(cls, value, info):
        return _strip_required(value, info.field_name)

    @field_validator("description", mode="before")
    @classmethod
    def enforce_description_length(cls, value):
        # The minimum counts the text as submitted, surrounding spaces included.
        text = _strip_required(value, "description")
        minimum = get_room_limits()["description_min_length"]
        if isinstance(value, str) and len(value) < minimum:
            raise ValueError(
                f"description must be at least {minimum} characters "
                f"(got {len(value)})"
            )
        return text

    @field_validator("max_participants")
    @classmethod
    def enforce_capacity_floor(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        floor = get_room_limits()["min_max_participants"]
        if value < floor:
            raise ValueError(f"max_participants must be at least {floor}")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            value = value.split(",")
        seen: List[str] = []
        for tag in value:
            cleaned = str(tag).strip()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        return seen


class JoinRequest(BaseModel):
    role: ParticipantRole = ParticipantRole.SUPPORTER

    @field_validator("role")
    @classmethod
    def reject_host_role(cls, value: ParticipantRole) -> ParticipantRole:
        if value == ParticipantRole.HOST:
            raise ValueError("The Host role belongs to the room creator")
        return value


class MessageCreate(BaseModel):
    text: str
    type: MessageType = MessageType.CHAT

    @field_validator("text", mode="before")
    @classmethod
    def enforce_body(cls, value):
        text = _strip_required(value, "text")
        maximum = get_room_limits()["message_max_length"]
        if isinstance(text, str) and len(text) > maximum:
            raise ValueError(f"text must be at most {maximum} characters")
        return text


class ReactionRequest(BaseModel):
    emoji: str = Field(..., max_length=32)

    @field_validator("emoji", mode="before")
    @classmethod
    def require_emoji(cls, value):
        return _strip_required(value, "emoji")


class ActionItemCreate(BaseModel):
    description: str = Field(..., max_length=1000)

    @field_validator("description", mode="before")
    @classmethod
    def require_description(cls, value):
        return _strip_required(value, "description")


class ActionItemUpdate(BaseModel):
    status: ActionStatus


class ResourceCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    url: str = Field(..., max_length=2048)
    type: Optional[str] = Field(None, max_length=50)

    @field_validator("url", mode="before")
    @classmethod
    def require_url(cls, value):
        return _strip_required(value, "url")

    @field_validator("title", "type", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class RoomOutcome(BaseModel):
    resolved: bool = False
    decision: Optional[str] = Field(None, max_length=2000)
    result: Optional[str] = Field(None, max_length=2000)
    follow_up: Optional[str] = Field(None, max_length=2000)


class EndRoomRequest(BaseModel):
    outcome: RoomOutcome = Field(default_factory=RoomOutcome)
    summary: Optional[str] = Field(None, max_length=5000)

    @field_validator("summary", mode="before")
    @classmethod
    def blank_summary(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class PollCreate(BaseModel):
    question: str = Field(..., max_length=500)
    options: List[str] = Field(..., min_length=2, max_length=10)

    @field_validator("question", mode="before")
    @classmethod
    def require_question(cls, value):
        return _strip_required(value, "question")

    @field_validator("options", mode="before")
    @classmethod
    def clean_options(cls, value):
        if not isinstance(value, list):
            return value
        return [str(option).strip() for option in value if str(option).strip()]


class PollVoteRequest(BaseModel):
    option_index: int = Field(..., ge=0)


class MentorNoteCreate(BaseModel):
    note: str = Field(..., max_length=5000)
    is_private: bool = False

    @field_validator("note", mode="before")
    @classmethod
    def require_note(cls, value):
        return _strip_required(value, "note")


# --- Responses ---


class UserSummary(BaseModel):
    user_id: str
    login: str
    display_name: str

    model_config = ConfigDict(from_attributes=True)


class ParticipantResponse(BaseModel):
    user: UserSummary
    role: ParticipantRole
    joined_at: Optional[datetime] = None


class ReactionSummary(BaseModel):
    emoji: str
    count: int
    reacted_by_me: bool = False


class MessageResponse(BaseModel):
    id: int
    author: UserSummary
    text: str
    type: MessageType
    created_at: datetime
    reactions: List[ReactionSummary] = Field(default_factory=list)


class ActionItemResponse(BaseModel):
    id: int
    description: str
    status: ActionStatus
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResourceResponse(BaseModel):
    id: int
    title: Optional[str] = None
    url: str
    type: Optional[str] = None
    added_by: str
    added_at: Optional[datetime] = None


class PollResponse(BaseModel):
    id: int
    question: str
    options: List[str]
    counts: List[int]
    total_votes: int
    my_vote: Optional[int] = None


class MentorNoteResponse(BaseModel):
    id: int
    author: UserSummary
    note: str
    is_private: bool
    created_at: Optional[datetime] = None


class ViewerContext(BaseModel):
    """What the requesting user may do with the room right now."""

    user_id: str
    role: Optional[ParticipantRole] = None
    is_host: bool = False
    is_participant: bool = False
    can_join: bool = False
    can_post: bool = False
    can_end: bool = False
    can_start: bool = False
    can_join_video: bool = False


class RoomSummary(BaseModel):
    room_id: str
    title: str
    startup_name: str
    situation: CrisisSituation
    urgency_level: UrgencyLevel
    status: RoomStatus
    is_live: bool
    phase: RoomPhase
    display_live: bool
    scheduled_time: datetime
    max_participants: int
    participant_count: int
    is_private: bool
    tags: List[str] = Field(default_factory=list)
    host: UserSummary


class RoomSnapshot(RoomSummary):
    description: str
    started_at: Optional[datetime] = None
    end_time: Optional[datetime] = None
    summary: Optional[str] = None
    outcome: Optional[RoomOutcome] = None
    participants: List[ParticipantResponse] = Field(default_factory=list)
    messages: List[MessageResponse] = Field(default_factory=list)
    action_items: List[ActionItemResponse] = Field(default_factory=list)
    resources: List[ResourceResponse] = Field(default_factory=list)
    polls: List[PollResponse] = Field(default_factory=list)
    mentor_notes: List[MentorNoteResponse] = Field(default_factory=list)
    viewer: ViewerContext

    @model_validator(mode="after")
    def closed_rooms_are_not_live(self) -> "RoomSnapshot":
        if self.status == RoomStatus.CLOSED and self.is_live:
            raise ValueError("a closed room cannot be live")
        return self


class RoomListResponse(BaseModel):
    rooms: List[RoomSummary]
    current_page: int
    total_pages: int
    total: int


class VideoSessionResponse(BaseModel):
    session_name: str
    join_url: str
    display_name: str
    config: Dict[str, str] = Field(default_factory=dict)
