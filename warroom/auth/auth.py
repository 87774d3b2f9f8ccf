from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, UTC
from jose import JWTError, jwt
from warroom.schemas.user import User as UserSchema
from warroom.data.user_manager import UserManager
from warroom.database import get_db
from warroom.models.user import User as UserModel
import os
import logging
import secrets
from fastapi.responses import JSONResponse
from warroom.config.loader import get_access_token_expire_minutes

# Dedicated logger for authentication events
logger = logging.getLogger("auth_module")
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())


# --- Configuration ---
def generate_dev_key() -> str:
    """Generate a secure default key for development environments ONLY."""
    key = secrets.token_urlsafe(48)
    logger.warning(
        "\n"
        + "*" * 80
        + "\n"
        + "DEVELOPMENT MODE: Using generated secret key.\n"
        + "This is NOT secure for production use!\n"
        + "Set WARROOM_JWT_SECRET_KEY in your environment variables for production.\n"
        + "*" * 80
    )
    return key


def validate_secret_key(key: str) -> bool:
    """Validate that a JWT secret key meets minimum security requirements."""
    if not key:
        return False
    if len(key) < 32:
        logger.error("JWT secret key must be at least 32 characters long for security.")
        return False
    return True


def _is_production_mode() -> bool:
    env = os.getenv("WARROOM_ENV", "development").strip().lower()
    return env in {"production", "prod"}


SECRET_KEY = os.getenv("WARROOM_JWT_SECRET_KEY")
ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("WARROOM_JWT_ISSUER", "warroom")
ACCESS_TOKEN_EXPIRE_MINUTES = get_access_token_expire_minutes()

if not SECRET_KEY:
    # Production must run with a stable key; tokens would not survive a restart.
    if _is_production_mode():
        raise RuntimeError(
            "Missing WARROOM_JWT_SECRET_KEY while WARROOM_ENV is set to production. "
            + "Configure a strong static secret before startup."
        )
    SECRET_KEY = generate_dev_key()
elif not validate_secret_key(SECRET_KEY):
    raise RuntimeError(
        "Invalid JWT secret key configuration. "
        + "The key must be at least 32 characters long. "
        + "Update WARROOM_JWT_SECRET_KEY in your environment variables."
    )
else:
    logger.info("JWT secret key validated and loaded from environment.")

if ACCESS_TOKEN_EXPIRE_MINUTES > 60:
    logger.warning(
        f"Long token expiration time configured: {ACCESS_TOKEN_EXPIRE_MINUTES} minutes. "
        + "Consider reducing this value for better security."
    )

# --- Token Utilities ---


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a new JWT access token.
    The 'sub' (subject) of the token is the user's login.
    """
    to_encode = data.copy()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "iss": JWT_ISSUER,
        }
    )

    try:
        encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
        logger.info(f"Successfully created access token for subject: {data.get('sub')}")
        return encoded_jwt
    except Exception as e:
        logger.error(
            f"Error creating access token for subject {data.get('sub')}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create access token due to an internal error.",
        )


def _decode_subject(token: str) -> Optional[str]:
    payload = jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[ALGORITHM],
        issuer=JWT_ISSUER,
        options={"verify_aud": False},
    )
    return payload.get("sub")


async def get_token_from_cookie(request: Request) -> Optional[str]:
    """
    Extracts JWT token from the 'access_token' HTTPOnly cookie.
    Handles potential 'Bearer ' prefix.
    """
    token_with_prefix = request.cookies.get("access_token")
    if not token_with_prefix:
        logger.debug("No 'access_token' cookie found in request.")
        return None

    if token_with_prefix.startswith("Bearer "):
        return token_with_prefix.split(" ", 1)[1]
    return token_with_prefix


# --- User Retrieval Dependencies ---


async def get_current_user(
    token: Optional[str] = Depends(get_token_from_cookie),
) -> str:
    """
    FastAPI dependency returning the caller's login from the cookie token.
    Raises 401 if the token is missing or invalid.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials. Invalid or expired token.",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token is None:
        logger.warning("Authentication required: No token found.")
        raise credentials_exception

    try:
        login = _decode_subject(token)
    except JWTError as e:
        logger.error(f"JWTError during token decoding: {str(e)}")
        raise credentials_exception

    if login is None:
        logger.error("Token decoding error: 'sub' claim missing in token payload.")
        raise credentials_exception
    return login


async def _get_current_user_model_optional(
    token: Optional[str], db: Session
) -> Optional[UserModel]:
    """
    Resolve the user model for a token, or None.
    Does not raise for auth failures.
    """
    if not token:
        return None

    try:
        login = _decode_subject(token)
    except JWTError:
        logger.warning("_get_current_user_model_optional: JWT decode failure.")
        return None
    if login is None:
        logger.warning(
            "_get_current_user_model_optional: Token payload missing 'sub' (login)."
        )
        return None

    user_crud = UserManager()
    user_crud.set_db(db)
    user = user_crud.get_user_by_login(login)
    if user is None:
        logger.warning(
            f"_get_current_user_model_optional: User '{login}' not found (token valid but user deleted?)."
        )
    elif not user.is_active:
        logger.warning(f"_get_current_user_model_optional: User '{login}' is inactive.")
        return None
    return user


async def get_current_active_user(
    request: Request,
    current_user_login: str = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserSchema:
    """
    FastAPI dependency returning the full, active caller as a detached
    Pydantic model. This is the explicit ``caller`` handed to room operations.
    """
    cached_user = getattr(request.state, "user", None)
    if cached_user and getattr(cached_user, "login", None) == current_user_login:
        return cached_user

    user_crud = UserManager()
    user_crud.set_db(db)
    user = user_crud.get_user_by_login(current_user_login)

    if not user or not user.is_active:
        logger.error(
            f"get_current_active_user: User with login '{current_user_login}' not found or inactive."
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User associated with token not found.",
        )

    safe_user = UserSchema.model_validate(user)
    request.state.user = safe_user
    return safe_user


# --- Authentication Middleware ---

EXEMPT_PATHS = [
    "/api/auth/token",
    "/api/auth/register",
    "/api/auth/logout",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
]


async def auth_middleware(request: Request, call_next):
    """
    Check the HTTPOnly cookie token for every protected path.
    Unauthenticated calls receive a 401 JSON body.
    """
    path = request.url.path

    if path in EXEMPT_PATHS or path.startswith("/docs/"):
        return await call_next(request)

    token = await get_token_from_cookie(request)
    user: Optional[UserModel] = None
    db: Optional[Session] = None

    if token:
        overridden = get_db in request.app.dependency_overrides
        try:
            # Tests override get_db; share their session so the middleware sees test data.
            if overridden:
                db = request.app.dependency_overrides[get_db]()
            else:
                db = next(get_db())
            user = await _get_current_user_model_optional(token=token, db=db)
            if user:
                request.state.user = UserSchema.model_validate(user)
                logger.debug(
                    f"Auth Middleware: User '{user.login}' authenticated for path '{path}'."
                )
        except Exception as e:
            logger.error(
                f"Auth Middleware: Unexpected error during token validation for path '{path}': {str(e)}",
                exc_info=True,
            )
            user = None
        finally:
            if db is not None and not overridden:
                db.close()

    if user is None:
        logger.info(f"Auth Middleware: Unauthenticated access attempt to {path}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "detail": "Not authenticated to access this API endpoint.",
                "code": "not_authenticated",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await call_next(request)


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
    "JWT_ISSUER",
]
