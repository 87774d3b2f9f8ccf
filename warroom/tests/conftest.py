import contextlib
import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# Ensure tests always use HTTP-friendly cookies regardless of local config.yaml.
os.environ["WARROOM_SECURE_COOKIES"] = "false"

from warroom.database import Base, get_db
from warroom.main import app
from warroom.data.room_manager import RoomManager
from warroom.data.user_manager import UserManager
from warroom.utils.security import get_password_hash
from warroom.schemas.room import RoomCreate

# Test constants for admin credentials
ADMIN_EMAIL_FOR_TEST = os.getenv("ADMIN_EMAIL", "admin@warroom.local")
ADMIN_PASSWORD_FOR_TEST = os.getenv("ADMIN_PASSWORD", "Admin@123!")
ADMIN_LOGIN_FOR_TEST = os.getenv("ADMIN_LOGIN", ADMIN_EMAIL_FOR_TEST.split("@")[0])

MEMBER_PASSWORD_FOR_TEST = "Member@123!"

LONG_DESCRIPTION = (
    "Our largest customer just cancelled and payroll is due in three weeks. "
    "We need help deciding between a bridge round, layoffs or a pivot."
)

# Define a test database URL
TEST_DATABASE_URL = "sqlite:///:memory:"  # Use in-memory SQLite for tests
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session")
def create_test_tables():
    """Create all database tables once per session before tests run."""
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function")
def db_session(create_test_tables):
    """
    Provides a transactional database session for a test.
    Rolls back changes after the test.
    Overrides the main app's get_db dependency.
    """
    connection = engine.connect()
    transaction = connection.begin()
    db = TestingSessionLocal(bind=connection)

    original_get_db = app.dependency_overrides.get(get_db)
    app.dependency_overrides[get_db] = lambda: db

    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()
        if original_get_db:
            app.dependency_overrides[get_db] = original_get_db
        else:
            del app.dependency_overrides[get_db]


@pytest.fixture(scope="function")
def client(db_session: Session):
    """Provides a TestClient instance for making requests to the FastAPI app."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def user_manager(db_session: Session) -> UserManager:
    manager = UserManager()
    manager.set_db(db_session)
    return manager


@pytest.fixture(scope="function")
def user_manager_with_admin(user_manager: UserManager):
    user_manager.add_user(
        first_name="Admin",
        last_name="User",
        email=ADMIN_EMAIL_FOR_TEST,
        hashed_password=get_password_hash(ADMIN_PASSWORD_FOR_TEST),
        role="admin",
        login=ADMIN_LOGIN_FOR_TEST,
    )
    return user_manager


@pytest.fixture(scope="function")
def authenticated_client(client: TestClient, user_manager_with_admin: UserManager):
    """A TestClient logged in as the admin user via the cookie token."""
    login_data = {"username": ADMIN_LOGIN_FOR_TEST, "password": ADMIN_PASSWORD_FOR_TEST}
    response = client.post("/api/auth/token", json=login_data)
    assert response.status_code == 200
    yield client


@pytest.fixture(scope="function")
def make_user(user_manager: UserManager):
    """Create an active member account and return the ORM user."""

    def _make(login: str, first_name: str = "Test", last_name: str = "Member"):
        return user_manager.add_user(
            first_name=first_name,
            last_name=last_name,
            email=f"{login}@warroom.local",
            hashed_password=get_password_hash(MEMBER_PASSWORD_FOR_TEST),
            login=login,
        )

    return _make


@pytest.fixture(scope="function")
def login_as(db_session: Session, make_user):
    """
    Returns a factory producing a separate, logged-in TestClient per user so
    a test can drive several people in the same room.
    """
    with contextlib.ExitStack() as stack:

        def _login(login: str, first_name: str = "Test", last_name: str = "Member"):
            user = make_user(login, first_name, last_name)
            test_client = stack.enter_context(TestClient(app))
            response = test_client.post(
                "/api/auth/token",
                json={"username": login, "password": MEMBER_PASSWORD_FOR_TEST},
            )
            assert response.status_code == 200, response.text
            test_client.user_id = user.user_id
            return test_client

        yield _login


def _room_payload(**overrides):
    payload = {
        "title": "Cash crunch",
        "startup_name": "Acme Robotics",
        "situation": "Running out of cash",
        "description": LONG_DESCRIPTION,
        "urgency_level": "Critical",
        "scheduled_time": (
            datetime.now(timezone.utc) + timedelta(hours=1)
        ).isoformat(),
        "max_participants": 10,
        "tags": ["finance", "payroll"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def room_payload():
    """Factory for a valid room creation body; keyword overrides replace fields."""
    return _room_payload


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def room_manager(db_session: Session) -> RoomManager:
    return RoomManager(db_session)


@pytest.fixture
def make_room(room_manager: RoomManager, room_payload):
    """Create a room directly through the repository, bypassing HTTP."""

    def _make(host_id: str, **overrides):
        return room_manager.create_room(RoomCreate(**room_payload(**overrides)), host_id)

    return _make
