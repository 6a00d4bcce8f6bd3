"""
Concrete credential stores.

``MemoryCredentialStore`` keeps the pair in process memory and is the
default. ``CacheCredentialStore`` persists it through a Django cache so the
pair survives process restarts.
"""

import logging

from django.core.cache import caches

from api_sessions.compat import Optional
from api_sessions.types import CredentialPair
from api_sessions.base.stores import BaseCredentialStore
from api_sessions.settings import api_sessions_settings


logger = logging.getLogger(__name__)


class MemoryCredentialStore(BaseCredentialStore):
    """
    Holds the pair in a single attribute.

    Replacing an immutable tuple is one assignment, so readers never see a
    partially updated pair.
    """

    def __init__(self, credentials: Optional[CredentialPair] = None) -> None:
        self._credentials = credentials

    def get(self) -> Optional[CredentialPair]:
        return self._credentials

    def set(self, credentials: CredentialPair) -> None:
        self._credentials = CredentialPair(*credentials)

    def clear(self) -> None:
        self._credentials = None


class CacheCredentialStore(BaseCredentialStore):
    """
    Persists the pair in a Django cache under one key.

    Both tokens are written in the same cache entry; there is no moment in
    which one token is updated and the other is not.

    Refreshes are single-flight per ``SessionContext``, i.e. per process.
    Processes sharing the entry do not coordinate their refreshes: each may
    spend the stored refresh token. A refresh that is rejected after another
    process has written a newer pair adopts that pair instead of logging
    out. A rejection that arrives before the other process wrote its pair
    still ends the session; deployments that share one entry across
    workers should pin a session to one worker.
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        alias: Optional[str] = None,
        timeout=None,
    ) -> None:
        self.namespace = namespace or api_sessions_settings.CREDENTIAL_NAMESPACE
        self.alias = alias or api_sessions_settings.CREDENTIAL_CACHE_ALIAS
        timeout = timeout or api_sessions_settings.CREDENTIAL_CACHE_TIMEOUT
        # Django caches expect seconds; None keeps the entry until cleared.
        self.timeout = timeout.total_seconds() if timeout is not None else None

    @property
    def cache(self):
        return caches[self.alias]

    @property
    def key(self) -> str:
        return f"{self.namespace}:credentials"

    def get(self) -> Optional[CredentialPair]:
        value = self.cache.get(self.key)
        if not value:
            return None

        try:
            return CredentialPair(
                access_token=value["access_token"],
                refresh_token=value.get("refresh_token"),
            )
        except (KeyError, TypeError, AttributeError):
            logger.warning("Discarding malformed credential entry %r", self.key)
            self.cache.delete(self.key)
            return None

    def set(self, credentials: CredentialPair) -> None:
        self.cache.set(
            self.key, CredentialPair(*credentials)._asdict(), timeout=self.timeout
        )

    def clear(self) -> None:
        self.cache.delete(self.key)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.alias}:{self.key}>"


def get_credential_store() -> BaseCredentialStore:
    """Instantiates the store class configured in CREDENTIAL_STORE."""
    return api_sessions_settings.CREDENTIAL_STORE()
