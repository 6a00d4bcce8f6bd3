"""
Tagged outcomes of an outbound API call.

``SessionClient.send`` returns one of these instead of raising, so the retry
state machine branches on values. ``unwrap()`` turns an outcome back into
the usual exception flow for callers that prefer it.
"""

import httpx

from api_sessions.compat import Union, NamedTuple
from api_sessions.exceptions import AuthError, NetworkError


class Ok(NamedTuple):
    """The API answered; the status code is left for the caller to judge."""

    response: httpx.Response

    ok = True

    def unwrap(self) -> httpx.Response:
        return self.response


class AuthFailure(NamedTuple):
    """Terminal authentication failure after the allowed retry."""

    error: AuthError

    ok = False

    def unwrap(self) -> httpx.Response:
        raise self.error


class NetworkFailure(NamedTuple):
    """The transport failed; nothing was received from the API."""

    error: NetworkError

    ok = False

    def unwrap(self) -> httpx.Response:
        raise self.error


SendResult = Union[Ok, AuthFailure, NetworkFailure]
