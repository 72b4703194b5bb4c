# app/security.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import get_settings
from app.errors import AuthenticationError

# Password hashing context (bcrypt by default)
_pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"

# auto_error=False so a missing header becomes our own 401, not FastAPI's 403
_bearer = HTTPBearer(auto_error=False)


# ------------ Password helpers ------------


def hash_password(plain: str) -> str:
    """Return a secure hash for a plaintext password."""
    return _pwd.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a stored hash."""
    return _pwd.verify(plain, hashed)


# ------------ Token helpers ------------


@dataclass(frozen=True)
class AuthenticatedContext:
    """Who is calling. Passed explicitly into every service function."""

    user_id: int
    email: str


def create_access_token(user_id: int, email: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(days=settings.access_token_expire_days),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[AuthenticatedContext]:
    """Return the caller encoded in the token, or None if it is invalid/expired."""
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
        return AuthenticatedContext(user_id=int(payload["sub"]), email=payload["email"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None


# ------------ FastAPI dependency ------------


def get_current_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> AuthenticatedContext:
    """
    Resolve the bearer token into an AuthenticatedContext.
    Usage (inside route):  ctx: AuthenticatedContext = Depends(get_current_context)
    """
    if credentials is None:
        raise AuthenticationError("No token provided.")
    ctx = decode_access_token(credentials.credentials)
    if ctx is None:
        raise AuthenticationError("Invalid or expired token.")
    return ctx


__all__ = [
    "hash_password",
    "verify_password",
    "AuthenticatedContext",
    "create_access_token",
    "decode_access_token",
    "get_current_context",
]
