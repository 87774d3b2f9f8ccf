from .auth import (
    create_access_token,
    get_token_from_cookie,
    get_current_user,
    _get_current_user_model_optional,
    get_current_active_user,
    auth_middleware,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    SECRET_KEY,
    ALGORITHM,
)

__all__ = [
    "create_access_token",
    "get_token_from_cookie",
    "get_current_user",
    "_get_current_user_model_optional",
    "get_current_active_user",
    "auth_middleware",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "SECRET_KEY",
    "ALGORITHM",
]
