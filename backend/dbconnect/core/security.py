"""
JWT helpers for auth tokens and action tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from dbconnect.config import get_settings


def create_access_token(
    subject: str,
    is_website_key: bool = False,
    extra_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed auth token.

    Args:
        subject: User identifier, stored as both ``userId`` and ``sub``
        is_website_key: Marks the token as a browser session token
        extra_claims: Additional claims to embed (e.g. username)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        **(extra_claims or {}),
        "sub": subject,
        "userId": subject,
        "isWebsiteKey": is_website_key,
        "iat": now,
        "exp": now + expires_delta,
    }

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_action_token(
    claims: dict[str, Any] | None = None,
    issued_at: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a short-lived action token bound to one sensitive request.

    ``issued_at`` may be backdated; the gate judges freshness from ``iat``.
    """
    settings = get_settings()
    issued_at = issued_at or datetime.now(timezone.utc)

    payload: dict[str, Any] = {**(claims or {}), "iat": int(issued_at.timestamp())}
    if expires_delta is not None:
        payload["exp"] = issued_at + expires_delta

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token string to decode

    Returns:
        Decoded payload dictionary

    Raises:
        ExpiredSignatureError: If the token is expired
        JWTError: If the token is otherwise invalid
    """
    settings = get_settings()

    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        options={"verify_aud": False},
    )
