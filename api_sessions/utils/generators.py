"""Utility functions for generating unique identifiers across the application.

Refresh flights are tagged with a time-ordered identifier so log lines from
the caller that started a refresh and from every caller that joined it can
be correlated and sorted.
"""

import uuid6


def generate_flight_id() -> uuid6.UUID:
    """Generates a time-ordered UUID v7 identifying one refresh flight."""
    return uuid6.uuid7()
