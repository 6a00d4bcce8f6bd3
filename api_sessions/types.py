"""
Data structures for credentials, outbound requests and session snapshots.

These containers cross every layer of the library: the credential store
persists ``CredentialPair`` values, the session client moves ``APIRequest``
descriptions through attach/send/retry, and the UI layer reads
``SessionSnapshot`` values.
"""

from api_sessions.compat import Any, Dict, Optional, NamedTuple, TYPE_CHECKING

if TYPE_CHECKING:
    from api_sessions.contexts import UserInfo


class CredentialPair(NamedTuple):
    """
    The access/refresh credentials issued by the remote auth API.

    Instances are immutable, so a store swapping one pair for another can
    never expose a half-updated pair to a reader.
    """

    access_token: str
    refresh_token: Optional[str]


class SessionSnapshot(NamedTuple):
    """Read-only view of the global session state."""

    is_authenticated: bool
    user: Optional["UserInfo"]
    access_token: Optional[str]


class APIRequest(NamedTuple):
    """
    Description of an outbound API call.

    A transport request is built from the description on every attempt,
    which keeps retries independent of already consumed request bodies.
    """

    method: str
    path: str
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    data: Optional[Dict[str, Any]] = None
    files: Any = None
    headers: Optional[Dict[str, str]] = None

    def with_header(self, name: str, value: str) -> "APIRequest":
        headers = dict(self.headers or {})
        headers[name] = value
        return self._replace(headers=headers)


class PendingRequest:
    """
    An outbound call that may be retried once after a credential refresh.
    """

    __slots__ = ("request", "_retried")

    def __init__(self, request: APIRequest) -> None:
        self.request = request
        self._retried = False

    @property
    def retried(self) -> bool:
        return self._retried

    def mark_retried(self) -> None:
        if self._retried:
            raise RuntimeError("Request has already been retried once.")
        self._retried = True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.request.method} {self.request.path}, "
            f"retried={self._retried})"
        )
