"""
Type hinting compatibility and utility abstractions.

This module centralizes type-related imports to handle version-specific
differences (e.g., 'Self' type) and provides a single entry point for
the library's type hinting needs.
"""

import sys
from typing import (
    Any,
    Dict,
    List,
    Union,
    Mapping,
    Optional,
    Callable,
    Awaitable,
    NamedTuple,
    TYPE_CHECKING,
)

# Python 3.11+ ships 'Self' in the standard library (PEP 673).
if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

__all__ = [
    "Any",
    "Self",
    "Dict",
    "List",
    "Union",
    "Mapping",
    "Callable",
    "Optional",
    "Awaitable",
    "NamedTuple",
    "TYPE_CHECKING",
]
