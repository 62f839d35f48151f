"""Signup and login."""
import logging

from sqlalchemy.orm import Session

from app.database import retry_on_serialization_failure, transaction
from app.errors import AuthenticationError, ConflictError, ValidationError
from app.models.user import User
from app.security import (
    BCRYPT_MAX_BYTES,
    DUMMY_PASSWORD_HASH,
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


@retry_on_serialization_failure
def register(db: Session, name: str, email: str, password: str) -> User:
    """Create a user. Emails are unique after trimming and lowercasing."""
    name = name.strip()
    email = normalize_email(email)
    if not name or not email:
        raise ValidationError("name and email are required")
    if len(password) < MIN_PASSWORD_LENGTH or len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters and at most {BCRYPT_MAX_BYTES} bytes"
        )

    if find_user_by_email(db, email) is not None:
        raise ConflictError("email already registered")

    user = User(name=name, email=email, password_hash=hash_password(password))
    with transaction(db, conflict_message="email already registered"):
        db.add(user)
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.email)
    return user


def authenticate(db: Session, email: str, password: str) -> tuple[User, str]:
    """Check credentials and issue an access token.

    Unknown email and wrong password fail identically, after the same
    amount of hashing work.
    """
    user = find_user_by_email(db, email)
    if user is None:
        verify_password(password, DUMMY_PASSWORD_HASH)
        raise AuthenticationError("invalid email or password")
    if not verify_password(password, user.password_hash):
        raise AuthenticationError("invalid email or password")

    token = create_access_token(user.id, user.email)
    logger.info("User %s logged in", user.id)
    return user, token
