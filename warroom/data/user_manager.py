import logging
import uuid
from typing import Optional

from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User, UserRole
from ..utils.identifiers import generate_user_id
from ..utils.security import verify_password

logger = logging.getLogger("auth")


class UserManager:
    """Manages user data using SQLAlchemy."""

    def __init__(self):
        self.db = None

    def set_db(self, db: Session):
        """Set the database session."""
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user data by email (case-insensitive)."""
        req_id = uuid.uuid4()
        if not email:
            logger.warning(f"[{req_id}] No email provided.")
            return None
        clean_email = email.strip().lower()
        user = self.db.query(User).filter(func.lower(User.email) == clean_email).first()
        if not user:
            logger.debug(f"[{req_id}] User not found with email: {email}")
        return user

    def get_user_by_login(self, login: str) -> Optional[User]:
        """Get user data by login/username (case-insensitive)."""
        req_id = uuid.uuid4()
        if not login:
            logger.warning(f"[{req_id}] No login provided.")
            return None
        clean_login = login.strip().lower()
        user = self.db.query(User).filter(func.lower(User.login) == clean_login).first()
        if not user:
            logger.debug(f"[{req_id}] User not found with login: {login}")
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user data by primary key user_id."""
        return self.db.query(User).filter(User.user_id == user_id).first()

    def verify_user_credentials(self, identifier: str, password: str) -> Optional[User]:
        """
        Verify user credentials using login or email (case-insensitive).
        Returns the User object if credentials are valid, otherwise None.
        """
        req_id = uuid.uuid4()
        if not identifier or not password:
            logger.warning(f"[{req_id}] Identifier or password not provided.")
            return None

        clean_identifier = identifier.strip()
        user = self.get_user_by_login(clean_identifier)
        if not user:
            user = self.get_user_by_email(clean_identifier)

        if user and user.is_active and verify_password(password, user.hashed_password):
            return user

        logger.warning(f"[{req_id}] Failed login attempt for identifier: {identifier}")
        return None

    def login_exists(self, login: str) -> bool:
        return self.get_user_by_login(login) is not None

    def email_exists(self, email: Optional[str]) -> bool:
        return bool(email) and self.get_user_by_email(email) is not None

    def has_admin_user(self) -> bool:
        return (
            self.db.query(User).filter(User.role == UserRole.ADMIN.value).count() > 0
        )

    def add_user(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        hashed_password: str,
        role: str = UserRole.MEMBER.value,
        login: Optional[str] = None,
        company: Optional[str] = None,
    ) -> User:
        """Add a new user. Returns the created User model. Raises ValueError if the user exists."""
        req_id = uuid.uuid4()
        raw_email = email.strip() if email else None
        clean_email = raw_email.lower() if raw_email else None
        proposed_login = (
            login or (clean_email.split("@")[0] if clean_email else "")
        ).strip()

        if not proposed_login:
            raise ValueError("A login/username is required to create a user.")

        clean_login = proposed_login.lower()
        if self.email_exists(clean_email):
            logger.warning(
                f"[{req_id}] Attempt to add existing user with email: {clean_email}"
            )
            raise ValueError(f"User with email {clean_email} already exists.")
        if self.login_exists(clean_login):
            logger.warning(
                f"[{req_id}] Attempt to add existing user with login: {clean_login}"
            )
            raise ValueError(f"User with login {clean_login} already exists.")

        db_user = User(
            user_id=generate_user_id(self.db, first_name, last_name),
            email=clean_email,
            first_name=first_name,
            last_name=last_name,
            login=clean_login,
            hashed_password=hashed_password,
            role=role,
            company=company,
        )

        try:
            self.db.add(db_user)
            self.db.commit()
            self.db.refresh(db_user)
            logger.info(
                f"[{req_id}] Successfully added user {db_user.login} with user_id {db_user.user_id}"
            )
            return db_user
        except Exception as e:
            self.db.rollback()
            logger.error(f"[{req_id}] Error adding user {clean_login}: {str(e)}")
            raise


def get_user_manager(db: Session = Depends(get_db)) -> UserManager:
    """Dependency provider for UserManager."""
    manager = UserManager()
    manager.set_db(db)
    return manager
