"""
Error taxonomy for the session client and the auth service.

Only a 401 is interpreted by the session layer (``AuthError`` and
``RefreshError``). Transport failures surface as ``NetworkError``, and
``APIError`` carries any other non-2xx answer together with the message
the API put in its response body.
"""

import httpx
from django.utils.translation import gettext_lazy as _

from api_sessions.choices import REFRESH_FAILURE
from api_sessions.compat import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from api_sessions.types import APIRequest


class APISessionError(Exception):
    """Base class for every error raised by API Sessions."""

    default_message = _("An unexpected error occurred.")

    def __init__(self, message=None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return str(self.message)


class NetworkError(APISessionError):
    """The transport failed before the API produced a response."""

    default_message = _("Could not reach the API.")

    def __init__(self, request: "APIRequest", original: httpx.TransportError):
        self.request = request
        self.original = original
        super().__init__(
            _("Could not reach the API ({method} {path}): {error}").format(
                method=request.method, path=request.path, error=original
            )
        )


class RefreshError(APISessionError):
    """A credential refresh did not produce a new credential pair."""

    messages = {
        REFRESH_FAILURE.NO_REFRESH_TOKEN: _("No refresh token is available."),
        REFRESH_FAILURE.REMOTE_REJECTED: _("The refresh token was rejected."),
        REFRESH_FAILURE.NETWORK_ERROR: _("The refresh endpoint could not be reached."),
        REFRESH_FAILURE.SESSION_CLEARED: _("The session ended during the refresh."),
    }

    def __init__(self, reason: str, response: Optional[httpx.Response] = None):
        self.reason = REFRESH_FAILURE(reason)
        self.response = response
        super().__init__(self.messages[self.reason])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.reason.value!r})"


class AuthError(APISessionError):
    """A request stayed unauthorized after the single allowed retry."""

    default_message = _("Authentication failed.")

    def __init__(
        self,
        response: httpx.Response,
        refresh_error: Optional[RefreshError] = None,
    ):
        self.response = response
        self.status_code = response.status_code
        self.refresh_error = refresh_error
        super().__init__()


class APIError(APISessionError):
    """A non-2xx response interpreted by the auth service."""

    def __init__(
        self,
        message,
        status_code: Optional[int] = None,
        response: Optional[httpx.Response] = None,
        payload: Any = None,
    ):
        self.status_code = status_code
        self.response = response
        self.payload = payload
        super().__init__(message)
