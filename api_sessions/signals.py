"""
Signals describing transitions of the global session state.

Receivers get ``context`` (the SessionContext that changed) plus:
- session_started: ``credentials``, ``user``
- credentials_rotated: ``credentials``
- session_ended: ``reason``
"""

from django.dispatch import Signal


session_started = Signal()
credentials_rotated = Signal()
session_ended = Signal()
