"""Service-level errors mapped to HTTP responses in ``app.main``."""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class ValidationError(ServiceError):
    """Bad input such as an unknown RSVP status."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(ServiceError):
    """Missing or invalid credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(AuthError):
    """Authenticated, but not the owner of the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class StoreError(ServiceError):
    """Transactional read/write failure. Nothing was committed; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CalendarError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    # Set on errors that require the user to run the OAuth flow again
    requires_authorization: bool = False


class NotConnectedError(CalendarError):
    status_code = status.HTTP_401_UNAUTHORIZED
    requires_authorization = True


class ExchangeError(CalendarError):
    """Provider rejected the authorization code. Restart the authorize flow."""

    status_code = status.HTTP_400_BAD_REQUEST


class RefreshError(CalendarError):
    """Provider refused to refresh the token. Reauthorization required."""

    status_code = status.HTTP_401_UNAUTHORIZED
    requires_authorization = True


class RemoteSyncError(CalendarError):
    """Remote calendar insert failed."""
