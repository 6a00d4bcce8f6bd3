"""
Read-only container for the authenticated user's profile.

The profile comes from the remote "who am I" endpoint and is opaque to the
session layer: this wrapper only offers dot-notation access to whatever
fields the API returned, and blocks mutation so the global session state
cannot be altered through the user object.
"""

from api_sessions.compat import Any, Dict
from api_sessions.settings import api_sessions_settings


class UserInfo:
    """
    Provides immutable dot-notation access to a user payload.

    Attributes can be accessed via dot-notation (e.g., user.role).
    Modification is blocked via __setattr__ to keep the wrapper read-only.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Dict[str, Any]) -> None:
        """
        Initialize user wrapper.

        Args:
            data: Dictionary returned by the current-user endpoint.

        Raises:
            TypeError: If data is not a dictionary.
        """
        if not isinstance(data, dict):
            raise TypeError(
                f"{self.__class__.__name__} requires a dict, got {type(data).__name__}"
            )

        # Using object.__setattr__ to bypass the custom __setattr__
        # which otherwise blocks all assignments.
        object.__setattr__(self, "_data", dict(data))

    def __getattr__(self, name: str) -> Any:
        """
        Get attribute via dot notation.

        Handles missing attributes according to the library's
        RAISE_ON_MISSING_USER_ATTR setting.
        """
        if name.startswith("_"):
            raise AttributeError(
                f"'{self.__class__.__name__}' has no attribute '{name}'"
            )

        if name in self._data:
            return self._data[name]

        if api_sessions_settings.RAISE_ON_MISSING_USER_ATTR:
            raise AttributeError(f"User has no field '{name}'")

        return None

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError(f"{self.__class__.__name__} does not support item assignment")

    def __delattr__(self, name: str) -> None:
        raise TypeError(f"{self.__class__.__name__} does not support item deletion")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UserInfo):
            return NotImplemented
        return self._data == other._data

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._data!r})"
