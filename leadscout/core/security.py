"""
Security utilities for the LeadScout API.
Tokens are issued by the identity provider; we only verify them.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import uuid

import jwt

from leadscout.config import Settings
from leadscout.models.user import Roles


@dataclass
class Principal:
    """Authenticated caller, resolved to a User row."""
    user_id: uuid.UUID
    external_id: str
    role: str
    email: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == Roles.ADMIN


def create_token(
    settings: Settings,
    subject: str,
    role: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed token in the identity provider's format.
    Used by local tooling and tests.
    """
    now = datetime.utcnow()
    to_encode = {
        "sub": subject,
        "role": role,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "jti": str(uuid.uuid4()),
    }
    if email:
        to_encode["email"] = email
    if name:
        to_encode["name"] = name
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(settings: Settings, token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def verify_token(settings: Settings, token: str) -> Optional[dict]:
    """Decoded payload if the token carries a subject and a known role."""
    payload = decode_token(settings, token)
    if not payload or not payload.get("sub"):
        return None
    if payload.get("role") not in Roles.ALL:
        return None
    return payload
