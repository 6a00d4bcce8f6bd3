"""
Constants for the session lifecycle and refresh outcomes.

SESSION_PHASE is the state flag of the per-context refresh state machine.
REFRESH_FAILURE tags every reason a credential refresh can fail, so callers
can tell an empty credential store apart from a rejected refresh token.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class SESSION_PHASE(models.TextChoices):
    """
    Lifecycle phases of a session context.

    Attributes:
        ANONYMOUS: No credentials are held.
        AUTHENTICATED: An access token is held and assumed fresh.
        REFRESHING: A single refresh call is in flight; callers join it.
    """

    ANONYMOUS = "anonymous", _("Anonymous")
    AUTHENTICATED = "authenticated", _("Authenticated")
    REFRESHING = "refreshing", _("Refreshing")


class REFRESH_FAILURE(models.TextChoices):
    """
    Reasons a credential refresh did not produce a new pair.

    Attributes:
        NO_REFRESH_TOKEN: The store holds no refresh token; no call was made.
        REMOTE_REJECTED: The refresh endpoint answered with a non-2xx status
            or an unusable payload.
        NETWORK_ERROR: The refresh call failed at the transport level.
        SESSION_CLEARED: The session was logged out while the refresh was
            in flight and its result was discarded.
    """

    NO_REFRESH_TOKEN = "no_refresh_token", _("No refresh token")
    REMOTE_REJECTED = "remote_rejected", _("Remote rejected")
    NETWORK_ERROR = "network_error", _("Network error")
    SESSION_CLEARED = "session_cleared", _("Session cleared")


class USER_ROLE(models.TextChoices):
    """Account roles accepted by the marketplace sign-up endpoints."""

    APPLICANT = "applicant", _("Applicant")
    DEVELOPER = "developer", _("Developer")
