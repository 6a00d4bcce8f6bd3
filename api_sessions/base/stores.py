"""
Abstract credential store.

A credential store holds exactly one ``CredentialPair`` for one session
context. Implementations must write and clear the pair as a single unit so
that a concurrent reader observes either the previous pair or the new pair,
never a mix of both.
"""

from api_sessions.compat import Optional
from api_sessions.types import CredentialPair


class BaseCredentialStore:
    """
    Core template for durable credential storage.

    Subclasses implement ``get``, ``set`` and ``clear``; the token accessors
    are derived from ``get`` so both fields always come from the same read.
    """

    def get(self) -> Optional[CredentialPair]:
        raise NotImplementedError

    def set(self, credentials: CredentialPair) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def get_access_token(self) -> Optional[str]:
        credentials = self.get()
        return credentials.access_token if credentials else None

    def get_refresh_token(self) -> Optional[str]:
        credentials = self.get()
        return credentials.refresh_token if credentials else None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
