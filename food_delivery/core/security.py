"""
Password Hashing and Bearer Tokens

Passwords are hashed with bcrypt; access tokens are HS256 JWTs carrying
the caller identity (id, email, role).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from food_delivery.core.config import Settings
from food_delivery.core.errors import PermissionDenied, ValidationFailed
from food_delivery.models import UserRole
from food_delivery.schemas import MAX_PASSWORD_BYTES


@dataclass(frozen=True)
class Identity:
    """Decoded bearer token contents."""
    id: int
    email: str
    role: UserRole


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Raises:
        ValidationFailed: Password longer than bcrypt accepts (72 bytes)
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationFailed(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


def create_access_token(settings: Settings, user_id: int, email: str, role: UserRole) -> str:
    """Issue a signed token for the given user."""
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expires_minutes)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "role": UserRole(role).value,
        "exp": expires,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Identity:
    """
    Verify a token and return the identity it carries.

    Raises:
        PermissionDenied: Signature invalid, token expired or claims malformed
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return Identity(
            id=int(claims["id"]),
            email=claims["email"],
            role=UserRole(claims["role"]),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        raise PermissionDenied("Invalid or expired token")
