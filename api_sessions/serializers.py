"""
DRF serializers for payloads exchanged with the remote auth API.

Outbound serializers validate what the application is about to send and
render it with the camelCase keys the API expects. Inbound serializers
validate credential payloads before they reach the credential store.
``SessionStateSerializer`` renders the global session state for the UI.
"""

from rest_framework import serializers
from django.utils.translation import gettext_lazy as _

from api_sessions.choices import USER_ROLE
from api_sessions.validators import validate_token
from api_sessions.utils.payloads import camelize_keys


class OutboundSerializer(serializers.Serializer):
    """Base class rendering validated data as an API request body."""

    def to_payload(self) -> dict:
        return camelize_keys(dict(self.validated_data))


class SignInSerializer(OutboundSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)
    role = serializers.ChoiceField(choices=USER_ROLE.choices, required=False)


class BaseSignUpSerializer(OutboundSerializer):
    email = serializers.EmailField()
    phone_number = serializers.CharField(max_length=32)
    password = serializers.CharField(trim_whitespace=False, min_length=8)


class ApplicantSignUpSerializer(BaseSignUpSerializer):
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    gender = serializers.ChoiceField(choices=["male", "female", "other"])
    date_of_birth = serializers.DateField()
    employment_status = serializers.CharField()
    location = serializers.CharField()

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["dateOfBirth"] = self.validated_data["date_of_birth"].isoformat()
        payload["role"] = USER_ROLE.APPLICANT.value
        return payload


class DeveloperSignUpSerializer(BaseSignUpSerializer):
    company_name = serializers.CharField()
    company_logo = serializers.CharField(required=False, allow_blank=True)
    company_description = serializers.CharField(required=False, allow_blank=True)
    years_of_experience = serializers.CharField(required=False, allow_blank=True)
    website = serializers.URLField(required=False, allow_blank=True)
    portfolio = serializers.URLField(required=False, allow_blank=True)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["role"] = USER_ROLE.DEVELOPER.value
        return payload


SIGN_UP_SERIALIZERS = {
    USER_ROLE.APPLICANT: ApplicantSignUpSerializer,
    USER_ROLE.DEVELOPER: DeveloperSignUpSerializer,
}


class VerifyEmailSerializer(OutboundSerializer):
    email = serializers.EmailField()
    token = serializers.CharField()


class ForgotPasswordSerializer(OutboundSerializer):
    email = serializers.EmailField()


class ResetTokenSerializer(OutboundSerializer):
    email = serializers.EmailField()
    token = serializers.CharField()


class ResetPasswordSerializer(ResetTokenSerializer):
    password = serializers.CharField(trim_whitespace=False, min_length=8)
    confirm_password = serializers.CharField(
        trim_whitespace=False, required=False, write_only=True
    )

    def validate(self, attrs):
        confirm = attrs.pop("confirm_password", None)
        if confirm is not None and confirm != attrs["password"]:
            raise serializers.ValidationError(
                {"confirm_password": _("Passwords do not match.")}
            )
        return attrs


class ChangePasswordSerializer(OutboundSerializer):
    current_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(trim_whitespace=False, min_length=8)

    def validate(self, attrs):
        if attrs["current_password"] == attrs["new_password"]:
            raise serializers.ValidationError(
                {"new_password": _("New password must differ from the current one.")}
            )
        return attrs


class SignInResponseSerializer(serializers.Serializer):
    """A sign-in answer; the API may omit the refresh token and the user."""

    access_token = serializers.CharField(validators=[validate_token])
    refresh_token = serializers.CharField(
        validators=[validate_token], required=False, allow_null=True
    )
    user = serializers.DictField(required=False, allow_null=True)


class RefreshResponseSerializer(serializers.Serializer):
    """A refresh answer; both tokens rotate together."""

    access_token = serializers.CharField(validators=[validate_token])
    refresh_token = serializers.CharField(validators=[validate_token])


class SessionStateSerializer(serializers.Serializer):
    """Renders a SessionSnapshot as ``{isAuthenticated, user, accessToken}``."""

    isAuthenticated = serializers.BooleanField(source="is_authenticated")
    user = serializers.SerializerMethodField()
    accessToken = serializers.CharField(source="access_token", allow_null=True)

    def get_user(self, snapshot):
        return snapshot.user.to_dict() if snapshot.user is not None else None
