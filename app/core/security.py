"""
Password hashing and bearer-token authentication.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.models.user import User


ACCESS_TOKEN = "access"
VERIFY_TOKEN = "verify"

bearer_scheme = HTTPBearer(auto_error=False)


class TokenError(Exception):
    """Raised when a bearer token cannot be used"""

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.expired = expired


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_token(user_id: UUID, token_type: str = ACCESS_TOKEN, ttl: Optional[timedelta] = None) -> str:
    """
    Sign a JWT for a user.

    Args:
        user_id: Subject of the token
        token_type: "access" for API calls, "verify" for email verification
        ttl: Lifetime; defaults to the configured lifetime for the token type
    """
    settings = get_settings()
    if ttl is None:
        ttl = settings.verification_token_ttl if token_type == VERIFY_TOKEN else settings.access_token_ttl

    payload = {
        "sub": str(user_id),
        "type": token_type,
        "exp": datetime.now(timezone.utc) + ttl,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, token_type: str = ACCESS_TOKEN) -> UUID:
    """
    Validate a JWT and return the user id it was issued for.

    Raises:
        TokenError: If the token is expired, malformed or of the wrong type
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired", expired=True)
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")

    if payload.get("type") != token_type:
        raise TokenError("Invalid token")

    try:
        return UUID(payload["sub"])
    except (KeyError, ValueError):
        raise TokenError("Invalid token")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated user, or fail with 401"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authorization token is missing or invalid")

    try:
        user_id = decode_token(credentials.credentials)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Resolve the user when a valid bearer token is present; anonymous otherwise"""
    if credentials is None:
        return None

    try:
        user_id = decode_token(credentials.credentials)
    except TokenError:
        return None

    return db.get(User, user_id)
