from passlib.context import CryptContext

# bcrypt for all stored credentials
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies a plain password against a stored hash.
    Surrounding whitespace is ignored, matching get_password_hash.
    """
    return pwd_context.verify(plain_password.strip(), hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage on a user record."""
    return pwd_context.hash(password.strip())
