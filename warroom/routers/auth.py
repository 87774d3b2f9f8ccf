import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Response
from pydantic import BaseModel

from warroom.auth.auth import (
    create_access_token,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    get_current_active_user,
)
from warroom.utils.security import get_password_hash
from warroom.data.user_manager import UserManager, get_user_manager
from warroom.models.user import UserRole
from warroom.schemas.schemas import LoginResponse, MessageOut
from warroom.schemas.user import User as UserSchema, UserCreate
from warroom.config.loader import get_secure_cookies_enabled

router = APIRouter(prefix="/api/auth", tags=["authentication"])
logger = logging.getLogger("auth_module")


class TokenRequest(BaseModel):
    username: str
    password: str


@router.post("/token", response_model=LoginResponse)
async def login_for_access_token(
    response: Response,
    token_request: TokenRequest,
    user_manager: UserManager = Depends(get_user_manager),
) -> LoginResponse:
    """
    Token login using JSON body for credentials.
    Sets an HTTPOnly cookie with the access token.
    """
    logger.info(f"Attempting login for username: {token_request.username}")
    user = user_manager.verify_user_credentials(
        token_request.username, token_request.password
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.login, "role": user.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=get_secure_cookies_enabled(),
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        path="/",
    )

    return LoginResponse(
        login_successful=True,
        user_id=user.user_id,
        role=user.role.lower(),
    )


@router.post("/register", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def register_user(
    user: UserCreate,
    user_manager: UserManager = Depends(get_user_manager),
) -> MessageOut:
    # The first account administers the deployment
    role = UserRole.MEMBER if user_manager.has_admin_user() else UserRole.ADMIN

    try:
        user_manager.add_user(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            hashed_password=get_password_hash(user.password),
            role=role.value,
            login=user.login,
            company=user.company,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return MessageOut(message="User registered successfully. Please log in.")


@router.get("/me", response_model=UserSchema)
async def read_current_user(
    current_user: UserSchema = Depends(get_current_active_user),
) -> UserSchema:
    return current_user


@router.post("/logout", response_model=MessageOut)
async def logout(response: Response) -> MessageOut:
    """Logs the user out by clearing the access token cookie."""
    response.delete_cookie(
        key="access_token",
        path="/",
        httponly=True,
        secure=get_secure_cookies_enabled(),
        samesite="lax",
    )
    return MessageOut(message="Logout successful")
