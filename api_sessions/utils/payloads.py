"""
Helpers for reading the marketplace API's response bodies.

The API wraps most answers in a ``{"success", "message", "data"}`` envelope
and reports failures through the ``message`` field.
"""

import httpx

from api_sessions.compat import Any, Optional
from api_sessions.settings import api_sessions_settings


def read_json(response: httpx.Response) -> Any:
    """Decode a JSON body, returning None for empty or non-JSON bodies."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def unwrap_envelope(payload: Any) -> Any:
    """Returns the ``data`` member of an enveloped payload, or the payload itself."""
    if not api_sessions_settings.UNWRAP_RESPONSE_ENVELOPE:
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


def extract_error_message(response: httpx.Response, default: Optional[str] = None):
    """
    Picks the human readable error out of a failed response.

    Falls back to ``default`` and finally to the HTTP reason phrase.
    """
    payload = read_json(response)
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, list):
            message = "; ".join(str(item) for item in message if item)
        if message:
            return str(message)
    if default:
        return default
    return response.reason_phrase or f"HTTP {response.status_code}"


def camelize_key(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def camelize_keys(data: dict) -> dict:
    """Converts the top-level snake_case keys of a request body to camelCase."""
    return {camelize_key(key): value for key, value in data.items()}
