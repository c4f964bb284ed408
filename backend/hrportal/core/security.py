from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext

from hrportal.core.settings import settings

if TYPE_CHECKING:
    from hrportal.models.user import User


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _expiry_delta(expires_delta: Optional[timedelta]) -> timedelta:
    if expires_delta is not None:
        return expires_delta
    minutes = settings.access_token_expire_minutes
    if minutes <= 0:
        minutes = 60
    return timedelta(minutes=minutes)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.setdefault("iat", now)
    to_encode.update({"exp": now + _expiry_delta(expires_delta)})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.algorithm)


def create_user_token(user: "User", expires_delta: Optional[timedelta] = None) -> str:
    """Bearer token for ``user``; the role claim is informational, access checks reload the user."""
    return create_access_token({"sub": str(user.id), "role": user.role.value}, expires_delta)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.algorithm])


def read_token_identity(token: str) -> Tuple[Optional[int], Optional[str]]:
    """(user_id, role) carried by a valid token, or (None, None)."""
    try:
        claims = decode_token(token)
        return int(claims["sub"]), claims.get("role")
    except (JWTError, KeyError, ValueError, TypeError):
        return None, None
