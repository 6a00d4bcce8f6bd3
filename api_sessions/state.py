"""
Global session state and the injectable session context.

``SessionState`` is what the UI layer observes: the current user and access
token. ``SessionContext`` bundles that state with the credential store and
the refresh state machine, and is handed to every ``SessionClient`` that
should share one authenticated session.
"""

import asyncio
import logging

from api_sessions.contexts import UserInfo
from api_sessions.choices import SESSION_PHASE
from api_sessions.compat import Optional, Awaitable
from api_sessions.stores import get_credential_store
from api_sessions.utils.tokens import fingerprint_token
from api_sessions.base.stores import BaseCredentialStore
from api_sessions.types import CredentialPair, SessionSnapshot
from api_sessions.signals import session_ended, session_started, credentials_rotated


logger = logging.getLogger(__name__)


class SessionState:
    """
    The authenticated user and the access token currently in use.

    The session is authenticated if and only if an access token is present;
    the user is informational and never derived from the token.
    """

    __slots__ = ("user", "access_token")

    def __init__(
        self, user: Optional[UserInfo] = None, access_token: Optional[str] = None
    ) -> None:
        self.user = user
        self.access_token = access_token

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def clear(self) -> None:
        self.user = None
        self.access_token = None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(self.is_authenticated, self.user, self.access_token)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(authenticated={self.is_authenticated}, "
            f"user={self.user!r})"
        )


class SessionContext:
    """
    Shared state for every client bound to one authenticated session.

    Holds the credential store, the observable session state and the
    refresh state machine (phase flag plus the in-flight refresh task).
    """

    def __init__(
        self,
        store: Optional[BaseCredentialStore] = None,
        state: Optional[SessionState] = None,
    ) -> None:
        self.store = store if store is not None else get_credential_store()
        self.state = state if state is not None else SessionState()
        self.refresh_flight: Optional[asyncio.Future] = None
        self.refresh_flight_id = None
        # Bumped on every sign-in and logout so a refresh started earlier
        # cannot write into the session that replaced its own.
        self.generation = 0

        credentials = self.store.get()
        if credentials is not None and credentials.access_token:
            self.state.access_token = credentials.access_token
            self.phase = SESSION_PHASE.AUTHENTICATED
        else:
            self.phase = SESSION_PHASE.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    @property
    def is_refreshing(self) -> bool:
        return self.refresh_flight is not None

    def snapshot(self) -> SessionSnapshot:
        return self.state.snapshot()

    def start_session(
        self, credentials: CredentialPair, user: Optional[UserInfo] = None
    ) -> None:
        """Installs the pair issued by a sign-in."""
        self.store.set(credentials)
        self._new_generation()
        self.state.user = user
        self.state.access_token = credentials.access_token
        self._transition(SESSION_PHASE.AUTHENTICATED)
        session_started.send(
            sender=self.__class__, context=self, credentials=credentials, user=user
        )

    def set_user(self, user: Optional[UserInfo]) -> None:
        self.state.user = user

    def rotate_credentials(self, credentials: CredentialPair) -> None:
        """Replaces both tokens after a successful refresh."""
        self.store.set(credentials)
        self.state.access_token = credentials.access_token
        self._transition(SESSION_PHASE.AUTHENTICATED)
        credentials_rotated.send(
            sender=self.__class__, context=self, credentials=credentials
        )

    def end_session(self, reason=None) -> None:
        """Clears both tokens and the user, whatever phase the context is in."""
        self.store.clear()
        self.state.clear()
        self._new_generation()
        self._transition(SESSION_PHASE.ANONYMOUS)
        session_ended.send(sender=self.__class__, context=self, reason=reason)

    def begin_refresh(self, flight: Awaitable, flight_id) -> asyncio.Future:
        """Schedules the single refresh flight every caller will await."""
        self.refresh_flight = asyncio.ensure_future(flight)
        self.refresh_flight_id = flight_id
        self._transition(SESSION_PHASE.REFRESHING)
        return self.refresh_flight

    def adopt_credentials(self, credentials: CredentialPair) -> None:
        """Takes over a pair another client already wrote to the store."""
        self.state.access_token = credentials.access_token
        self._transition(SESSION_PHASE.AUTHENTICATED)
        credentials_rotated.send(
            sender=self.__class__, context=self, credentials=credentials
        )

    def finish_refresh(self, flight_id) -> None:
        """Leaves the refreshing phase once the flight has settled."""
        if flight_id != self.refresh_flight_id:
            # Detached by a session boundary; a newer flight may be running.
            return

        self.refresh_flight = None
        self.refresh_flight_id = None
        if self.phase == SESSION_PHASE.REFRESHING:
            self._transition(
                SESSION_PHASE.AUTHENTICATED
                if self.state.is_authenticated
                else SESSION_PHASE.ANONYMOUS
            )

    def _new_generation(self) -> None:
        # A refresh started before a sign-in or logout must neither write
        # its result nor be joined by requests of the new session.
        self.generation += 1
        self.refresh_flight = None
        self.refresh_flight_id = None

    def _transition(self, phase: SESSION_PHASE) -> None:
        if phase != self.phase:
            logger.debug(
                "Session %s -> %s (access %s)",
                self.phase,
                phase,
                fingerprint_token(self.state.access_token),
            )
        self.phase = phase

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.phase} store={self.store!r}>"
