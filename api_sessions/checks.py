from django.conf import settings
from django.core.checks import Error, register

from api_sessions.stores import CacheCredentialStore
from api_sessions.settings import api_sessions_settings


@register()
def check_base_url_configured(app_configs, **kwargs):
    errors = []
    if not api_sessions_settings.BASE_URL:
        errors.append(
            Error(
                "API_SESSIONS['BASE_URL'] is not configured.",
                hint="Point it at the marketplace API, e.g. 'https://api.example.com'.",
                obj="settings.API_SESSIONS['BASE_URL']",
                id="api_sessions.E001",
            )
        )
    return errors


@register()
def check_credential_cache_alias(app_configs, **kwargs):
    errors = []
    store_class = api_sessions_settings.CREDENTIAL_STORE
    alias = api_sessions_settings.CREDENTIAL_CACHE_ALIAS

    uses_cache = isinstance(store_class, type) and issubclass(
        store_class, CacheCredentialStore
    )

    if uses_cache and alias not in settings.CACHES:
        errors.append(
            Error(
                f"The cache alias '{alias}' used for credentials is not configured.",
                hint="Add it to CACHES or change CREDENTIAL_CACHE_ALIAS.",
                obj="settings.API_SESSIONS['CREDENTIAL_CACHE_ALIAS']",
                id="api_sessions.E002",
            )
        )
    return errors
