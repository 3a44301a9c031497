"""
Adapters layer - External calendar integrations.
"""

from .google_calendar import GoogleBusyPeriodProvider, GoogleCalendarClient, token_lookup_from_config
from .mock_calendar import MockBusyPeriodProvider

__all__ = [
    "GoogleBusyPeriodProvider",
    "GoogleCalendarClient",
    "MockBusyPeriodProvider",
    "token_lookup_from_config",
]
