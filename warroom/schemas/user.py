from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional

from warroom.models.user import UserRole
from warroom.utils.password_validation import validate_password

LOGIN_PATTERN = r"^[A-Za-z0-9._@+-]+$"


class UserBase(BaseModel):
    login: Optional[str] = Field(
        None,
        min_length=3,
        max_length=50,
        pattern=LOGIN_PATTERN,
        json_schema_extra={"example": "maya.founder"},
    )
    email: Optional[str] = Field(
        None, json_schema_extra={"example": "maya@example.com"}
    )
    first_name: Optional[str] = Field(None, json_schema_extra={"example": "Maya"})
    last_name: Optional[str] = Field(None, json_schema_extra={"example": "Chen"})
    company: Optional[str] = Field(None, json_schema_extra={"example": "Acme Labs"})

    model_config = ConfigDict(from_attributes=True)

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_to_none(cls, value: Optional[str]):
        if value is None:
            return value
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("login", mode="before")
    @classmethod
    def normalize_login(cls, value: Optional[str]):
        if value is None:
            return value
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class UserCreate(UserBase):
    login: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=LOGIN_PATTERN,
        json_schema_extra={"example": "maya.founder"},
    )
    password: str = Field(
        ..., min_length=8, json_schema_extra={"example": "SecurePassword123!"}
    )

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, value: str) -> str:
        is_valid, error_message = validate_password(value)
        if not is_valid:
            raise ValueError(error_message)
        return value


class User(UserBase):
    user_id: str = Field(..., json_schema_extra={"example": "USR-CHENXXM-001"})
    login: str
    role: UserRole = UserRole.MEMBER
    is_active: bool = True
    display_name: str = ""
