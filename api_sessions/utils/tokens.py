"""
Helpers for handling bearer credentials without leaking them.

Raw tokens must never reach log output. A short one-way fingerprint is
logged instead, which is enough to tell two credentials apart while
debugging a rotation.
"""

import hashlib

from api_sessions.compat import Mapping, Optional
from api_sessions.settings import api_sessions_settings


FINGERPRINT_LENGTH = 12


def fingerprint_token(token: Optional[str]) -> str:
    """Hash a token with the configured algorithm and keep a short prefix."""
    if not token:
        return "-"
    hasher = hashlib.new(api_sessions_settings.TOKEN_FINGERPRINT_ALGORITHM)
    hasher.update(token.strip().encode("utf-8"))
    return hasher.hexdigest()[:FINGERPRINT_LENGTH]


def build_authorization_header(token: str) -> str:
    """Format a token with the configured authorization scheme."""
    return f"{api_sessions_settings.AUTH_HEADER_TYPE} {token}"


def extract_bearer_token(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    """
    Reads the token back from an 'Authorization' header.

    Returns None when the header is absent, uses another scheme, or is
    malformed.
    """
    if not headers:
        return None

    value = None
    for name, header in headers.items():
        if name.lower() == "authorization":
            value = header
            break

    if not value:
        return None

    parts = value.split()
    if len(parts) != 2:
        return None

    if parts[0].lower() != api_sessions_settings.AUTH_HEADER_TYPE.lower():
        return None

    return parts[1]
