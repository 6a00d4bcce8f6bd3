"""
Configuration management for API Sessions.

This module handles the loading, validation, and caching of library settings
read from the ``API_SESSIONS`` dict of the Django settings. It enforces type
and business constraints up front so a misconfigured client fails at startup
rather than on the first expired token.
"""

import hashlib
from datetime import timedelta

from django.conf import settings
from django.test.signals import setting_changed
from django.utils.module_loading import import_string
from django.utils.translation import gettext_lazy as _
from django.core.exceptions import ImproperlyConfigured


DEFAULTS = {
    # Transport
    "BASE_URL": "",
    "TIMEOUT": timedelta(seconds=30),
    "VERIFY_SSL": True,
    "DEFAULT_HEADERS": {"Accept": "application/json"},
    "AUTH_HEADER_TYPE": "Bearer",
    # Credential Store
    "CREDENTIAL_STORE": "api_sessions.stores.MemoryCredentialStore",
    "CREDENTIAL_NAMESPACE": "api_sessions",
    "CREDENTIAL_CACHE_ALIAS": "default",
    "CREDENTIAL_CACHE_TIMEOUT": None,
    # Refresh Policy
    "REFRESH_TRANSIENT_RETRIES": 0,
    "TOKEN_FINGERPRINT_ALGORITHM": "sha256",
    # Payload Handling
    "RAISE_ON_MISSING_USER_ATTR": False,
    "UNWRAP_RESPONSE_ENVELOPE": True,
    # Remote Auth API
    "SIGN_IN_PATH": "/auth/signin",
    "SIGN_UP_PATH": "/auth/signup/{role}",
    "REFRESH_PATH": "/auth/session/refresh",
    "LOGOUT_PATH": "/auth/logout",
    "CURRENT_USER_PATH": "/user",
    "CHANGE_PASSWORD_PATH": "/user/change-password",
    "VERIFY_EMAIL_PATH": "/auth/verify-email",
    "FORGOT_PASSWORD_PATH": "/auth/forgot-password",
    "VERIFY_RESET_TOKEN_PATH": "/auth/verify-reset-token",
    "RESET_PASSWORD_PATH": "/auth/reset-password",
    # Extensibility Hooks (Dotted paths to callables)
    "LOGOUT_HOOK": None,
}

IMPORT_STRINGS = (
    "CREDENTIAL_STORE",
    "LOGOUT_HOOK",
)

PATH_SETTINGS = tuple(name for name in DEFAULTS if name.endswith("_PATH"))

REMOVED_SETTINGS = ()

TYPE_VALIDATORS = {
    "BASE_URL": str,
    "TIMEOUT": timedelta,
    "VERIFY_SSL": bool,
    "DEFAULT_HEADERS": dict,
    "AUTH_HEADER_TYPE": str,
    "CREDENTIAL_STORE": str,
    "CREDENTIAL_NAMESPACE": str,
    "CREDENTIAL_CACHE_ALIAS": str,
    "CREDENTIAL_CACHE_TIMEOUT": (timedelta, type(None)),
    "REFRESH_TRANSIENT_RETRIES": int,
    "TOKEN_FINGERPRINT_ALGORITHM": str,
    "RAISE_ON_MISSING_USER_ATTR": bool,
    "UNWRAP_RESPONSE_ENVELOPE": bool,
    "LOGOUT_HOOK": (str, type(None)),
    **{name: str for name in PATH_SETTINGS},
}


class APISessionsSettings:
    """
    Lazy settings container for API Sessions.
    """

    __slots__ = ("_user_settings", "_cache")

    def __init__(self, user_settings=None):
        self._user_settings = user_settings or {}
        self._cache = {}
        self._validate_all()

    def _get_setting(self, setting_name: str):
        return self._user_settings.get(setting_name, DEFAULTS[setting_name])

    def __getattr__(self, setting_name: str):
        if setting_name not in DEFAULTS:
            if setting_name in REMOVED_SETTINGS:
                raise AttributeError(_(f"'{setting_name}' has been removed."))
            raise AttributeError(_(f"Invalid setting: '{setting_name}'."))

        if setting_name in self._cache:
            return self._cache[setting_name]

        value = self._get_setting(setting_name)

        if setting_name in IMPORT_STRINGS and isinstance(value, str):
            value = self._import_from_string(setting_name, value)

        self._cache[setting_name] = value
        return value

    def _import_from_string(self, setting_name: str, path: str):
        try:
            value = import_string(path)
        except ImportError as exc:
            raise ImproperlyConfigured(
                _(f"Could not import '{path}' for '{setting_name}'.")
            ) from exc

        if not callable(value):
            raise ImproperlyConfigured(_(f"'{setting_name}' must be a callable."))
        return value

    def _validate_all(self):
        self._validate_removed_settings()
        self._validate_unknown_settings()
        self._validate_primitive_types()
        self._validate_business_logic()

    def _validate_removed_settings(self):
        for setting_name in REMOVED_SETTINGS:
            if setting_name in self._user_settings:
                raise ImproperlyConfigured(
                    _(f"'{setting_name}' is no longer supported.")
                )

    def _validate_unknown_settings(self):
        unknown = sorted(set(self._user_settings) - set(DEFAULTS))
        if unknown:
            raise ImproperlyConfigured(
                _(f"Unknown API_SESSIONS settings: {', '.join(unknown)}.")
            )

    def _validate_primitive_types(self):
        for setting_name, expected_types in TYPE_VALIDATORS.items():
            value = self._get_setting(setting_name)
            # bool is an int subclass; retries must be a real integer.
            if expected_types is int and isinstance(value, bool):
                raise ImproperlyConfigured(_(f"'{setting_name}' has invalid type."))
            if not isinstance(value, expected_types):
                raise ImproperlyConfigured(_(f"'{setting_name}' has invalid type."))

    def _validate_business_logic(self):
        self._validate_timeouts()
        self._validate_retries()
        self._validate_fingerprint_algorithm()
        self._validate_paths()
        self._validate_header_type()

    def _validate_timeouts(self):
        timeout = self._get_setting("TIMEOUT")
        cache_timeout = self._get_setting("CREDENTIAL_CACHE_TIMEOUT")

        if timeout <= timedelta(0):
            raise ImproperlyConfigured(_("TIMEOUT must be positive."))

        if cache_timeout is not None and cache_timeout <= timedelta(0):
            raise ImproperlyConfigured(_("CREDENTIAL_CACHE_TIMEOUT must be positive."))

    def _validate_retries(self):
        if self._get_setting("REFRESH_TRANSIENT_RETRIES") < 0:
            raise ImproperlyConfigured(
                _("REFRESH_TRANSIENT_RETRIES cannot be negative.")
            )

    def _validate_fingerprint_algorithm(self):
        algo = self._get_setting("TOKEN_FINGERPRINT_ALGORITHM")
        if algo not in hashlib.algorithms_available:
            raise ImproperlyConfigured(_(f"'{algo}' is unsupported."))

    def _validate_paths(self):
        invalid = [
            name for name in PATH_SETTINGS if not self._get_setting(name).startswith("/")
        ]
        if invalid:
            raise ImproperlyConfigured(
                _(f"Endpoint paths must start with '/': {', '.join(invalid)}.")
            )

        if "{role}" not in self._get_setting("SIGN_UP_PATH"):
            raise ImproperlyConfigured(
                _("SIGN_UP_PATH must contain a '{role}' placeholder.")
            )

    def _validate_header_type(self):
        header_type = self._get_setting("AUTH_HEADER_TYPE")
        if not header_type or len(header_type.split()) != 1:
            raise ImproperlyConfigured(
                _("AUTH_HEADER_TYPE must be a single non-empty word.")
            )

    def reload(self, new_user_settings=None):
        self._user_settings = new_user_settings or {}
        self._cache.clear()
        self._validate_all()


api_sessions_settings = APISessionsSettings(getattr(settings, "API_SESSIONS", None))


def reload_api_sessions_settings(*args, **kwargs):
    if kwargs.get("setting") == "API_SESSIONS":
        api_sessions_settings.reload(kwargs.get("value"))


setting_changed.connect(reload_api_sessions_settings)
