from pydantic import BaseModel

from warroom.models.user import UserRole


class LoginResponse(BaseModel):
    login_successful: bool
    user_id: str
    role: UserRole


class MessageOut(BaseModel):
    message: str
