from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import UUID

from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import AuthError

CALENDAR_STATE_TOKEN_TYPE = "calendar_state"


def create_token(
    subject: str | Any,
    expires_delta: timedelta,
    token_type: str,
    **claims: Any,
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "exp": now + expires_delta,
        "iat": now,
        "sub": str(subject),
        "type": token_type,
        **claims,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(subject: str | Any) -> str:
    return create_token(
        subject,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "access",
    )


def verify_token(token: str, token_type: str = "access") -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        if payload.get("type") != token_type:
            raise JWTError("Invalid token type")
        return payload
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def issue_calendar_state(user_id: UUID) -> str:
    """Issue the anti-forgery ``state`` value for the calendar OAuth flow.

    The value is a short-lived signed token carrying the user id and a random
    nonce, so the callback can tell which user started the flow without a
    bearer header.
    """
    return create_token(
        user_id,
        timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES),
        CALENDAR_STATE_TOKEN_TYPE,
        nonce=secrets.token_urlsafe(16),
    )


def verify_calendar_state(state: str | None) -> UUID:
    """Return the user id bound to a previously issued ``state`` value."""
    if not state:
        raise AuthError("Missing state parameter")
    try:
        payload = verify_token(state, token_type=CALENDAR_STATE_TOKEN_TYPE)
        return UUID(payload["sub"])
    except (ValueError, KeyError) as exc:
        raise AuthError("Invalid or expired state parameter") from exc
