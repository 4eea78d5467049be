"""Google OAuth 2.0 and Calendar v3 REST clients.

Both clients are synchronous ``httpx`` wrappers. Token material, client
secrets and authorization codes are never written to the log.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from app.core.clock import utcnow
from app.core.config import Settings
from app.core.exceptions import ExchangeError, RefreshError, RemoteSyncError
from app.schemas import OAuthToken, RemoteEventRef

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"

_DEFAULT_EXPIRES_IN_SECONDS = 3600


def _coerce_expires_in_seconds(value: Any) -> int:
    if isinstance(value, bool):
        return _DEFAULT_EXPIRES_IN_SECONDS
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else _DEFAULT_EXPIRES_IN_SECONDS
    return _DEFAULT_EXPIRES_IN_SECONDS


def _safe_error_message(response: httpx.Response) -> str:
    """Short provider error description without echoing the request."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error, str) and error.strip():
            return error.strip()[:200]
    return f"HTTP {response.status_code}"


def token_from_response(
    payload: Any, previous: Optional[OAuthToken] = None
) -> OAuthToken:
    if not isinstance(payload, dict):
        raise ValueError("Token response is not a JSON object")
    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token.strip():
        raise ValueError("Token response is missing access_token")

    expires_in = _coerce_expires_in_seconds(payload.get("expires_in"))
    # Google omits refresh_token on refresh responses
    refresh_token = payload.get("refresh_token") or (
        previous.refresh_token if previous else None
    )
    return OAuthToken(
        access_token=access_token.strip(),
        refresh_token=refresh_token,
        token_type=payload.get("token_type") or "Bearer",
        scope=payload.get("scope") or (previous.scope if previous else None),
        expiry=utcnow() + timedelta(seconds=expires_in),
    )


class GoogleOAuthClient:
    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings
        self._http = http_client or httpx.Client(
            timeout=settings.OUTBOUND_TIMEOUT_SECONDS
        )

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self._settings.GOOGLE_CLIENT_ID,
            "redirect_uri": self._settings.GOOGLE_REDIRECT_URI,
            "response_type": "code",
            "scope": self._settings.GOOGLE_CALENDAR_SCOPE,
            "access_type": "offline",
            # Force a refresh token to be returned on every consent
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def _post_token(self, data: Dict[str, str]) -> httpx.Response:
        return self._http.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": self._settings.GOOGLE_CLIENT_ID,
                "client_secret": self._settings.GOOGLE_CLIENT_SECRET,
                **data,
            },
            headers={"Accept": "application/json"},
        )

    def exchange_code(self, code: str) -> OAuthToken:
        try:
            response = self._post_token(
                {
                    "code": code,
                    "redirect_uri": self._settings.GOOGLE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                }
            )
        except httpx.HTTPError as exc:
            raise ExchangeError(f"Network error during token exchange: {exc}") from exc

        if response.status_code != 200:
            raise ExchangeError(
                f"Token exchange failed: {_safe_error_message(response)}"
            )
        try:
            return token_from_response(response.json())
        except ValueError as exc:
            raise ExchangeError(f"Invalid token response: {exc}") from exc

    def refresh(self, token: OAuthToken) -> OAuthToken:
        if not token.refresh_token:
            raise RefreshError("Stored token has no refresh token")
        try:
            response = self._post_token(
                {
                    "refresh_token": token.refresh_token,
                    "grant_type": "refresh_token",
                }
            )
        except httpx.HTTPError as exc:
            raise RefreshError(f"Token refresh request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise RefreshError(f"Token refresh failed: {_safe_error_message(response)}")
        try:
            return token_from_response(response.json(), previous=token)
        except ValueError as exc:
            raise RefreshError(f"Invalid token response: {exc}") from exc


class GoogleCalendarClient:
    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._calendar_id = settings.GOOGLE_CALENDAR_ID
        self._http = http_client or httpx.Client(
            timeout=settings.OUTBOUND_TIMEOUT_SECONDS
        )

    def insert_event(self, token: OAuthToken, body: Dict[str, Any]) -> RemoteEventRef:
        url = (
            f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/"
            f"{quote(self._calendar_id, safe='')}/events"
        )
        try:
            response = self._http.post(
                url,
                json=body,
                headers={"Authorization": f"{token.token_type} {token.access_token}"},
            )
        except httpx.HTTPError as exc:
            raise RemoteSyncError(f"Calendar request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise RemoteSyncError(
                f"Unable to create event in calendar: {_safe_error_message(response)}"
            )
        try:
            payload = response.json()
            return RemoteEventRef(
                id=payload["id"],
                html_link=payload.get("htmlLink"),
                status=payload.get("status"),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise RemoteSyncError(f"Invalid calendar response: {exc}") from exc
