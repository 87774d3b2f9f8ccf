from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func  # For default timestamps

from ..database import Base


class Room(Base):
    __tablename__ = "rooms"

    room_id = Column(String(20), primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    startup_name = Column(String(200), nullable=False)
    situation = Column(String(64), nullable=False, index=True)
    description = Column(Text, nullable=False)
    urgency_level = Column(String(16), nullable=False, default="High")
    # 'Active' or 'Closed'; see services.room_lifecycle for the derived phase
    status = Column(String(16), nullable=False, default="Active", index=True)
    is_live = Column(Boolean, nullable=False, default=False, index=True)
    scheduled_time = Column(DateTime(timezone=True), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    max_participants = Column(Integer, nullable=False, default=50)
    is_private = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, default=list, nullable=False)
    summary = Column(Text, nullable=True)
    outcome = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Host identity is fixed at creation
    host_id = Column(String(20), ForeignKey("users.user_id"), nullable=False, index=True)

    host = relationship("User", back_populates="hosted_rooms", foreign_keys=[host_id])

    participants = relationship(
        "RoomParticipant",
        back_populates="room",
        order_by="RoomParticipant.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    messages = relationship(
        "RoomMessage",
        back_populates="room",
        order_by="RoomMessage.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    action_items = relationship(
        "ActionItem",
        back_populates="room",
        order_by="ActionItem.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    resources = relationship(
        "RoomResource",
        back_populates="room",
        order_by="RoomResource.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    polls = relationship(
        "RoomPoll",
        back_populates="room",
        order_by="RoomPoll.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    mentor_notes = relationship(
        "MentorNote",
        back_populates="room",
        order_by="MentorNote.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"Room(room_id={self.room_id!r}, status={self.status!r}, "
            f"is_live={self.is_live!r})"
        )


class RoomParticipant(Base):
    __tablename__ = "room_participants"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_participants_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        String(20),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    role = Column(String(16), nullable=False, default="Supporter")
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    room = relationship("Room", back_populates="participants")
    user = relationship("User", back_populates="room_memberships")


class RoomMessage(Base):
    __tablename__ = "room_messages"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        String(20),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    body = Column(Text, nullable=False)
    message_type = Column(String(16), nullable=False, default="chat")
    created_at = Column(DateTime(timezone=True), nullable=False)

    room = relationship("Room", back_populates="messages")
    author = relationship("User")
    reactions = relationship(
        "MessageReaction",
        back_populates="message",
        order_by="MessageReaction.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class MessageReaction(Base):
    __tablename__ = "message_reactions"
    __table_args__ = (
        UniqueConstraint(
            "message_id", "user_id", "emoji", name="uq_message_reactions_user_emoji"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(
        Integer,
        ForeignKey("room_messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    emoji = Column(String(32), nullable=False)

    message = relationship("RoomMessage", back_populates="reactions")


class ActionItem(Base):
    __tablename__ = "action_items"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        String(20),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="Pending")
    created_by = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    room = relationship("Room", back_populates="action_items")


class RoomResource(Base):
    __tablename__ = "room_resources"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        String(20),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(200), nullable=True)
    url = Column(String(2048), nullable=False)
    resource_type = Column(String(50), nullable=True)
    added_by = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    room = relationship("Room", back_populates="resources")


class RoomPoll(Base):
    __tablename__ = "room_polls"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        String(20),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question = Column(String(500), nullable=False)
    options = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    room = relationship("Room", back_populates="polls")
    votes = relationship(
        "PollVote",
        back_populates="poll",
        order_by="PollVote.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PollVote(Base):
    __tablename__ = "poll_votes"
    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", name="uq_poll_votes_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    poll_id = Column(
        Integer,
        ForeignKey("room_polls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    option_index = Column(Integer, nullable=False)

    poll = relationship("RoomPoll", back_populates="votes")


class MentorNote(Base):
    __tablename__ = "mentor_notes"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        String(20),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id = Column(String(20), ForeignKey("users.user_id"), nullable=False)
    note = Column(Text, nullable=False)
    is_private = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    room = relationship("Room", back_populates="mentor_notes")
    author = relationship("User")
