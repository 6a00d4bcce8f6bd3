"""
Validation logic for credentials exchanged with the remote auth API.

Tokens are opaque to this library, but they still have to be usable as a
single header value: a token containing whitespace would produce an
'Authorization' header the API cannot parse.
"""

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _


def validate_token(value):
    """
    Ensures that a credential is a non-empty string without whitespace.

    Used by the payload serializers so a malformed sign-in or refresh
    response is rejected before it reaches the credential store.
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(_("Token must be a non-empty string."), code="invalid_token")

    if len(value.split()) != 1 or value != value.strip():
        raise ValidationError(
            _("Token must not contain whitespace."), code="invalid_token"
        )
