from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from warroom.database import Base
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(20), primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    login = Column(
        String, unique=True, index=True, nullable=False
    )  # Login is required and unique
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    role = Column(String, default=UserRole.MEMBER.value, nullable=False)
    company = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Rooms this user created and hosts
    hosted_rooms = relationship(
        "Room",
        back_populates="host",
        foreign_keys="Room.host_id",
    )

    room_memberships = relationship(
        "RoomParticipant",
        back_populates="user",
    )

    @property
    def display_name(self) -> str:
        first = (self.first_name or "").strip()
        last = (self.last_name or "").strip()
        name = " ".join(part for part in (first, last) if part)
        return name or self.login
