"""Credential hashing and bearer-token issuance/verification.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs whose
claims are decoded once into ``TokenClaims``; route handlers only ever see
the integer user id returned by ``get_current_user_id``.
"""
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as ClaimsValidationError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import AuthenticationError
from app.models.user import User

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72


class TokenClaims(BaseModel):
    """Claims carried by every access token."""

    sub: int
    email: str
    iat: int
    exp: int


def _secret_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_secret_bytes(plain), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_secret_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# Compared against when the email is unknown, so a miss costs the same
# bcrypt work as a wrong password.
DUMMY_PASSWORD_HASH = hash_password("not-a-real-password")


def create_access_token(user_id: int, email: str) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.JWT_EXPIRE_HOURS)).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """Verify signature and expiry, then parse the claims.

    Raises ``AuthenticationError`` for any malformed, forged or expired token.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return TokenClaims.model_validate(payload)
    except (JWTError, ClaimsValidationError) as exc:
        logger.info("Rejected access token: %s", exc)
        raise AuthenticationError("invalid or expired token") from exc


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> int:
    """FastAPI dependency resolving the bearer token to the actor's user id.

    A validly signed token for a user that no longer exists is rejected too.
    """
    if credentials is None:
        raise AuthenticationError("authorization header required")
    claims = decode_access_token(credentials.credentials)
    if db.get(User, claims.sub) is None:
        logger.warning("Token for unknown user %s rejected", claims.sub)
        raise AuthenticationError("user no longer exists")
    return claims.sub
