from contextlib import asynccontextmanager
from typing import Optional
import logging
import traceback
import json

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from sqlalchemy import text

from warroom.database import engine, Base, SessionLocal
import warroom.models  # noqa: F401  # Ensure all SQLAlchemy models are registered
from warroom.errors import RoomError, validation_messages
from warroom.routers import auth as auth_router
from warroom.routers import rooms as rooms_router
from warroom.auth.auth import auth_middleware
from warroom.utils.logging_config import setup_logging

logger = logging.getLogger("warroom")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized. First user to register becomes admin.")
    yield
    logger.info("Application shutdown.")


app = FastAPI(
    title="Startup War Room",
    description="Crisis collaboration rooms for founders and their helpers",
    lifespan=lifespan,
)


def _summarize_payload(body: bytes) -> Optional[str]:
    if not body:
        return None
    parsed = json.loads(body.decode("utf-8"))
    if not isinstance(parsed, dict):
        return type(parsed).__name__
    redacted = {}
    for key, value in parsed.items():
        lower_key = str(key).lower()
        if "password" in lower_key or "token" in lower_key:
            redacted[key] = "***"
        elif isinstance(value, (str, int, float, bool, type(None))):
            redacted[key] = value
        else:
            redacted[key] = type(value).__name__
    return json.dumps(redacted, ensure_ascii=True)


async def audit_action_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    method = request.method.upper()
    path = request.url.path
    if method not in {"POST", "PUT", "PATCH", "DELETE"} or not path.startswith("/api/"):
        return await call_next(request)

    payload_summary: Optional[str] = None
    if request.headers.get("content-type", "").lower().startswith("application/json"):
        try:
            payload_summary = _summarize_payload(await request.body())
        except (UnicodeDecodeError, ValueError):
            payload_summary = "unavailable"

    response = await call_next(request)

    user = getattr(request.state, "user", None)
    if user is None:
        return response
    details = {
        "method": method,
        "path": path,
        "status": response.status_code,
        "user": getattr(user, "login", None) or "unknown",
    }
    if payload_summary:
        details["payload"] = payload_summary
    logging.getLogger("audit").info("Audit action: %s", details)
    return response


# Registered first so it runs inside the auth middleware and sees request.state.user
app.add_middleware(BaseHTTPMiddleware, dispatch=audit_action_middleware)
app.add_middleware(BaseHTTPMiddleware, dispatch=auth_middleware)


async def localhost_no_cache_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    response = await call_next(request)
    # Snapshots are polled; a cached response would freeze the room view.
    if request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response


app.add_middleware(BaseHTTPMiddleware, dispatch=localhost_no_cache_middleware)

app.include_router(auth_router.router)
app.include_router(rooms_router.router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {str(exc)}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error. Please check logs."},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code} error: {exc.detail}\n{traceback.format_exc()}"
        )
    else:
        logger.info(f"HTTP {exc.status_code}: {exc.detail}")
    content = {"detail": exc.detail}
    if isinstance(exc, RoomError):
        content["code"] = exc.code
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_messages = validation_messages(exc.errors())
    logger.warning(f"Validation error: {error_messages}")
    return JSONResponse(
        status_code=422,
        content={"detail": error_messages, "code": "validation_error"},
    )


@app.get("/health", tags=["healthcheck"])
async def health_check():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Health check database connection error: {e}")
        raise HTTPException(
            status_code=503, detail=f"Database connection failed: {str(e)}"
        )
    finally:
        db.close()
