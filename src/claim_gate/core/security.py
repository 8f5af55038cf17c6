"""Bearer token helpers for the administrative surface."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from claim_gate.core.settings import settings

ADMIN_ROLE = "admin"


class TokenError(ValueError):
    """Raised when a bearer token cannot be decoded or lacks a subject."""


def create_access_token(
    subject: str,
    role: str = ADMIN_ROLE,
    expires_minutes: int | None = None,
) -> str:
    """Create a signed JWT carrying ``sub`` and ``role`` claims."""
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    to_encode: dict[str, object] = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT issued by :func:`create_access_token`.

    Raises:
        TokenError: If the signature, expiry or subject is invalid.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise TokenError("Could not validate credentials") from err
    if not payload.get("sub"):
        raise TokenError("Token is missing a subject")
    return payload
