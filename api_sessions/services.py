"""
Orchestration layer for the remote auth API.
"""

import logging

import httpx
from django.utils.translation import gettext_lazy as _

from api_sessions import serializers
from api_sessions.contexts import UserInfo
from api_sessions.choices import USER_ROLE
from api_sessions.client import SessionClient
from api_sessions.compat import Any, Optional
from api_sessions.types import APIRequest, CredentialPair
from api_sessions.results import SendResult
from api_sessions.settings import api_sessions_settings
from api_sessions.exceptions import APIError, APISessionError
from api_sessions.utils.payloads import read_json, unwrap_envelope, extract_error_message


logger = logging.getLogger(__name__)


class AuthService:
    """
    Unified interface for the sign-in, account and password endpoints.

    Public endpoints go through ``SessionClient.dispatch`` so a 401 from a
    wrong password never triggers a credential refresh; account endpoints go
    through ``SessionClient.send``.
    """

    def __init__(self, client: SessionClient) -> None:
        self.client = client

    @property
    def context(self):
        return self.client.context

    async def _call(
        self,
        request: APIRequest,
        error_message,
        authenticated: bool = False,
    ) -> Any:
        """Runs a request and returns the decoded body of a 2xx answer."""
        if authenticated:
            result: SendResult = await self.client.send(request)
        else:
            result = await self.client.dispatch(request)

        response = result.unwrap()
        return self._read_payload(response, error_message)

    @staticmethod
    def _read_payload(response: httpx.Response, error_message) -> Any:
        payload = read_json(response)
        if not response.is_success:
            raise APIError(
                extract_error_message(response, default=str(error_message)),
                status_code=response.status_code,
                response=response,
                payload=payload,
            )
        return payload

    async def sign_in(self, email: str, password: str, **extra: Any):
        """
        Exchanges credentials for a session and loads the signed-in user.

        Returns the session snapshot after the credentials are stored.
        """
        serializer = serializers.SignInSerializer(
            data={"email": email, "password": password, **extra}
        )
        serializer.is_valid(raise_exception=True)

        payload = await self._call(
            APIRequest(
                "POST", api_sessions_settings.SIGN_IN_PATH, json=serializer.to_payload()
            ),
            _("Authentication failed. Please try again."),
        )

        issued = serializers.SignInResponseSerializer(data=unwrap_envelope(payload))
        if not issued.is_valid():
            raise APIError(_("No access token received."), payload=payload)

        data = issued.validated_data
        credentials = CredentialPair(data["access_token"], data.get("refresh_token"))
        user = UserInfo(data["user"]) if data.get("user") else None
        self.context.start_session(credentials, user=user)

        if user is None:
            try:
                await self.fetch_current_user()
            except APISessionError:
                # A session without a usable user is not signed in.
                self.client.force_logout()
                raise

        logger.info("Signed in user %s", self.context.state.user.id)
        return self.context.snapshot()

    async def sign_up(self, role: str, **data: Any) -> Any:
        """Registers an applicant or developer account."""
        try:
            serializer_class = serializers.SIGN_UP_SERIALIZERS[USER_ROLE(role)]
        except ValueError:
            raise APIError(
                _("Unsupported account role '%(role)s'.") % {"role": role}
            ) from None

        serializer = serializer_class(data=data)
        serializer.is_valid(raise_exception=True)

        path = api_sessions_settings.SIGN_UP_PATH.format(role=USER_ROLE(role).value)
        return await self._call(
            APIRequest("POST", path, json=serializer.to_payload()),
            _("Sign up failed. Please try again."),
        )

    async def fetch_current_user(self) -> UserInfo:
        """Loads the signed-in user from the "who am I" endpoint."""
        payload = await self._call(
            APIRequest("GET", api_sessions_settings.CURRENT_USER_PATH),
            _("Failed to fetch user info. Please try again."),
            authenticated=True,
        )

        data = unwrap_envelope(payload)
        if not isinstance(data, dict) or not data.get("role"):
            raise APIError(_("Invalid user data"), payload=payload)

        user = UserInfo(data)
        self.context.set_user(user)
        return user

    async def verify_email(self, email: str, token: str) -> Any:
        serializer = serializers.VerifyEmailSerializer(
            data={"email": email, "token": token}
        )
        serializer.is_valid(raise_exception=True)

        payload = await self._call(
            APIRequest(
                "POST",
                api_sessions_settings.VERIFY_EMAIL_PATH,
                json=serializer.to_payload(),
            ),
            _("Failed to verify email. Please try again."),
        )
        if not isinstance(payload, dict) or not payload.get("success"):
            raise APIError(_("Invalid response from server"), payload=payload)
        return payload

    async def forgot_password(self, email: str) -> Any:
        serializer = serializers.ForgotPasswordSerializer(data={"email": email})
        serializer.is_valid(raise_exception=True)

        return await self._call(
            APIRequest(
                "POST",
                api_sessions_settings.FORGOT_PASSWORD_PATH,
                json=serializer.to_payload(),
            ),
            _("Failed to send the password reset email."),
        )

    async def verify_reset_token(self, email: str, token: str) -> Any:
        serializer = serializers.ResetTokenSerializer(
            data={"email": email, "token": token}
        )
        serializer.is_valid(raise_exception=True)

        return await self._call(
            APIRequest(
                "POST",
                api_sessions_settings.VERIFY_RESET_TOKEN_PATH,
                json=serializer.to_payload(),
            ),
            _("The reset link is invalid or has expired."),
        )

    async def reset_password(
        self,
        email: str,
        token: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> Any:
        data = {"email": email, "token": token, "password": password}
        if confirm_password is not None:
            data["confirm_password"] = confirm_password

        serializer = serializers.ResetPasswordSerializer(data=data)
        serializer.is_valid(raise_exception=True)

        return await self._call(
            APIRequest(
                "POST",
                api_sessions_settings.RESET_PASSWORD_PATH,
                json=serializer.to_payload(),
            ),
            _("Failed to reset password. Please try again."),
        )

    async def change_password(self, current_password: str, new_password: str) -> Any:
        serializer = serializers.ChangePasswordSerializer(
            data={"current_password": current_password, "new_password": new_password}
        )
        serializer.is_valid(raise_exception=True)

        return await self._call(
            APIRequest(
                "PUT",
                api_sessions_settings.CHANGE_PASSWORD_PATH,
                json=serializer.to_payload(),
            ),
            _("Failed to change password"),
            authenticated=True,
        )

    async def logout(self) -> None:
        """Ends the session remotely when possible and always locally."""
        if self.context.is_authenticated:
            try:
                await self._call(
                    APIRequest("POST", api_sessions_settings.LOGOUT_PATH),
                    _("Logout failed."),
                    authenticated=True,
                )
            except APISessionError as exc:
                logger.warning("Remote logout failed: %s", exc)

        self.client.force_logout()
