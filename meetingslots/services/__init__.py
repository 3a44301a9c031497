"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .schemas import FindSlotsRequest, FindSlotsResponse
from .timeslot_finder import BusyPeriodProvider, TimeslotFinderService

__all__ = [
    "BusyPeriodProvider",
    "FindSlotsRequest",
    "FindSlotsResponse",
    "TimeslotFinderService",
]
