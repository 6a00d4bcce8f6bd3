"""
Session-aware HTTP client for the marketplace API.

Every call carries the current access token. A 401 triggers one refresh of
the credential pair, shared by all callers that hit the 401 while it is in
flight, followed by a single retry. When the refresh cannot succeed the
session is logged out before the failure is returned.
"""

import asyncio
import logging

import httpx

from api_sessions.state import SessionContext
from api_sessions.choices import REFRESH_FAILURE
from api_sessions.compat import Any, Optional, Union
from api_sessions.exceptions import AuthError, NetworkError, RefreshError
from api_sessions.settings import api_sessions_settings
from api_sessions.serializers import RefreshResponseSerializer
from api_sessions.types import APIRequest, CredentialPair, PendingRequest
from api_sessions.utils.generators import generate_flight_id
from api_sessions.utils.payloads import read_json, unwrap_envelope
from api_sessions.results import Ok, AuthFailure, NetworkFailure, SendResult
from api_sessions.utils.tokens import (
    fingerprint_token,
    extract_bearer_token,
    build_authorization_header,
)


logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"


class SessionClient:
    """
    Wraps an ``httpx.AsyncClient`` with the session token lifecycle.

    Clients constructed with the same ``SessionContext`` share one credential
    store and one refresh flight.
    """

    def __init__(
        self,
        context: Optional[SessionContext] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.context = context if context is not None else SessionContext()
        self._owns_http = http is None
        self.http = http if http is not None else self._build_http_client()

    @staticmethod
    def _build_http_client() -> httpx.AsyncClient:
        settings = api_sessions_settings
        return httpx.AsyncClient(
            base_url=settings.BASE_URL,
            timeout=settings.TIMEOUT.total_seconds(),
            headers=settings.DEFAULT_HEADERS,
            verify=settings.VERIFY_SSL,
        )

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    # Credential attachment

    def attach_credential(self, request: APIRequest) -> APIRequest:
        """
        Returns the request carrying the stored access token.

        Without a stored token the request is returned unchanged.
        """
        return self._attach(request, self.context.store.get_access_token())

    @staticmethod
    def _attach(request: APIRequest, access_token: Optional[str]) -> APIRequest:
        if not access_token:
            return request
        return request.with_header(
            AUTHORIZATION_HEADER, build_authorization_header(access_token)
        )

    # Transport

    async def dispatch(self, request: APIRequest) -> SendResult:
        """Performs one transport call without credentials or retries."""
        http_request = self.http.build_request(
            request.method,
            request.path,
            params=request.params,
            json=request.json,
            data=request.data,
            files=request.files,
            headers=request.headers,
        )
        try:
            response = await self.http.send(http_request)
        except httpx.TransportError as exc:
            logger.warning(
                "Transport failure on %s %s: %s", request.method, request.path, exc
            )
            return NetworkFailure(NetworkError(request, exc))
        return Ok(response)

    async def send(self, request: APIRequest) -> SendResult:
        """
        Sends an authenticated request, recovering once from an expired token.

        Returns ``Ok`` for any response other than a 401, ``AuthFailure`` when
        the request is still unauthorized after one refresh-and-retry or the
        refresh failed, and ``NetworkFailure`` when the transport failed.
        """
        pending = PendingRequest(request)
        attached = self.attach_credential(pending.request)

        while True:
            result = await self.dispatch(attached)
            if not self._is_unauthorized(result):
                return result

            if pending.retried:
                logger.info(
                    "%s %s unauthorized after retry", request.method, request.path
                )
                return AuthFailure(AuthError(result.response))

            pending.mark_retried()

            sent_token = extract_bearer_token(attached.headers)
            current_token = self.context.store.get_access_token()
            if current_token and current_token != sent_token:
                # The pair was rotated while this request was in flight.
                attached = self._attach(pending.request, current_token)
                continue

            generation = self.context.generation
            credentials = await self.ensure_fresh_credential()

            if isinstance(credentials, RefreshError):
                self._end_failed_session(credentials, generation)
                return AuthFailure(AuthError(result.response, refresh_error=credentials))

            attached = self._attach(pending.request, credentials.access_token)

    def _end_failed_session(self, error: RefreshError, generation: int) -> None:
        """
        Logs out once per failed refresh.

        The first waiter to resume ends the session and moves the generation
        on; the other waiters of the same flight, and a flight that outlived
        its session, find the session already ended.
        """
        if error.reason == REFRESH_FAILURE.SESSION_CLEARED:
            return
        if self.context.generation != generation:
            return
        self.force_logout(reason=error.reason)

    @staticmethod
    def _is_unauthorized(result: SendResult) -> bool:
        return (
            isinstance(result, Ok)
            and result.response.status_code == httpx.codes.UNAUTHORIZED
        )

    # Refresh state machine

    async def ensure_fresh_credential(self) -> Union[CredentialPair, RefreshError]:
        """
        Obtains a new credential pair, sharing one refresh among all callers.

        A caller arriving while a refresh is in flight awaits that refresh
        instead of starting another; rotated refresh tokens are single use,
        so two parallel refreshes would invalidate each other.
        """
        context = self.context
        flight = context.refresh_flight

        if flight is None:
            flight_id = generate_flight_id()
            logger.debug("Starting refresh flight %s", flight_id)
            flight = context.begin_refresh(self._run_refresh(flight_id), flight_id)
        else:
            logger.debug("Joining refresh flight %s", context.refresh_flight_id)

        # Shielded so a cancelled caller does not cancel the shared flight.
        return await asyncio.shield(flight)

    async def _run_refresh(self, flight_id) -> Union[CredentialPair, RefreshError]:
        try:
            return await self._refresh(flight_id)
        finally:
            self.context.finish_refresh(flight_id)

    async def _refresh(self, flight_id) -> Union[CredentialPair, RefreshError]:
        context = self.context
        generation = context.generation
        refresh_token = context.store.get_refresh_token()

        if not refresh_token:
            logger.info("Refresh flight %s: no refresh token stored", flight_id)
            return RefreshError(REFRESH_FAILURE.NO_REFRESH_TOKEN)

        request = APIRequest(
            "POST",
            api_sessions_settings.REFRESH_PATH,
            json={"refresh_token": refresh_token},
        )
        attempts = 1 + api_sessions_settings.REFRESH_TRANSIENT_RETRIES

        error = None
        for attempt in range(1, attempts + 1):
            result = await self.dispatch(request)

            if isinstance(result, NetworkFailure):
                error = RefreshError(REFRESH_FAILURE.NETWORK_ERROR)
            elif result.response.is_success:
                error = None
                break
            else:
                error = RefreshError(REFRESH_FAILURE.REMOTE_REJECTED, result.response)
                if not result.response.is_server_error:
                    logger.info(
                        "Refresh flight %s rejected with %s",
                        flight_id,
                        result.response.status_code,
                    )
                    break

            logger.warning(
                "Refresh flight %s attempt %s/%s failed: %s",
                flight_id,
                attempt,
                attempts,
                error.reason,
            )

        if error is None:
            credentials = self._parse_credentials(result.response)
            if credentials is None:
                logger.warning(
                    "Refresh flight %s returned an unusable payload", flight_id
                )
                error = RefreshError(REFRESH_FAILURE.REMOTE_REJECTED, result.response)

        if error is not None:
            return self._settle_failed_refresh(error, refresh_token, generation, flight_id)

        if context.generation != generation:
            logger.info("Refresh flight %s outlived its session", flight_id)
            return RefreshError(REFRESH_FAILURE.SESSION_CLEARED, result.response)

        context.rotate_credentials(credentials)
        logger.info(
            "Refresh flight %s rotated credentials (access %s)",
            flight_id,
            fingerprint_token(credentials.access_token),
        )
        return credentials

    def _settle_failed_refresh(
        self, error: RefreshError, refresh_token: str, generation: int, flight_id
    ) -> Union[CredentialPair, RefreshError]:
        context = self.context
        if context.generation != generation:
            logger.info("Refresh flight %s outlived its session", flight_id)
            return RefreshError(REFRESH_FAILURE.SESSION_CLEARED, error.response)

        # Clients in other processes sharing the store refresh on their own.
        # Losing that race spends our refresh token, but the pair they wrote
        # is valid and must not be cleared.
        current = context.store.get()
        if (
            current is not None
            and current.access_token
            and current.refresh_token != refresh_token
        ):
            context.adopt_credentials(current)
            logger.info(
                "Refresh flight %s adopted credentials rotated elsewhere (access %s)",
                flight_id,
                fingerprint_token(current.access_token),
            )
            return current

        return error

    @staticmethod
    def _parse_credentials(response: httpx.Response) -> Optional[CredentialPair]:
        serializer = RefreshResponseSerializer(
            data=unwrap_envelope(read_json(response))
        )
        if not serializer.is_valid():
            return None
        return CredentialPair(
            serializer.validated_data["access_token"],
            serializer.validated_data["refresh_token"],
        )

    def force_logout(self, reason=None) -> None:
        """
        Clears the credential store and the session state.

        The state is cleared before this returns; redirecting the user is
        left to LOGOUT_HOOK or the ``session_ended`` signal.
        """
        logger.info("Ending session (%s)", reason or "logout")
        self.context.end_session(reason=reason)

        hook = api_sessions_settings.LOGOUT_HOOK
        if hook:
            hook(context=self.context, reason=reason)

    # Convenience

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Sends an authenticated request and raises instead of returning failures."""
        result = await self.send(APIRequest(method.upper(), path, **kwargs))
        return result.unwrap()

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.http.base_url} {self.context!r}>"
