"""
Request and response models for the slot search entry point.

Payloads use camelCase keys; the models expose snake_case attributes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.exceptions import InvalidRequestError
from ..domain.models import SearchWindow, TimeSlot, parse_instant
from ..domain.preferences import SchedulingPreferences


class PreferencesPayload(BaseModel):
    """Scheduling preferences as sent by callers."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    work_hours_start: Optional[str] = Field(default=None, alias="workHoursStart")
    work_hours_end: Optional[str] = Field(default=None, alias="workHoursEnd")
    avoid_weekends: bool = Field(default=False, alias="avoidWeekends")
    buffer_minutes: int = Field(default=0, alias="bufferMinutes", strict=True)

    def to_domain(self) -> SchedulingPreferences:
        return SchedulingPreferences(
            work_hours_start=self.work_hours_start,
            work_hours_end=self.work_hours_end,
            avoid_weekends=self.avoid_weekends,
            buffer_minutes=self.buffer_minutes,
        )


class FindSlotsRequest(BaseModel):
    """A single slot search request."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    participant_ids: List[str] = Field(alias="participantIds")
    window_start: str = Field(alias="windowStart")
    window_end: str = Field(alias="windowEnd")
    duration_minutes: int = Field(alias="durationMinutes", strict=True)
    preferences: PreferencesPayload = Field(default_factory=PreferencesPayload)
    max_results: Optional[int] = Field(default=None, alias="maxResults", ge=0, strict=True)
    granularity_minutes: Optional[int] = Field(default=None, alias="granularityMinutes", strict=True)
    timezone: Optional[str] = None

    @field_validator("window_start", "window_end")
    @classmethod
    def validate_instant(cls, value: str) -> str:
        """Ensure the value is a full ISO-8601 datetime."""
        parse_instant(value)
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        """Ensure the timezone is a known IANA identifier."""
        if value is None:
            return value
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "FindSlotsRequest":
        """
        Validate a raw payload.

        Raises:
            InvalidRequestError: If required fields are missing or malformed
        """
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequestError(f"Invalid find-slots request: {exc}") from exc

    def to_window(self) -> SearchWindow:
        return SearchWindow(
            start=parse_instant(self.window_start),
            end=parse_instant(self.window_end),
        )

    def to_preferences(self) -> SchedulingPreferences:
        return self.preferences.to_domain()


class SlotPayload(BaseModel):
    start: str
    end: str


class FindSlotsResponse(BaseModel):
    """Ordered slot list returned to callers. An empty list means no common time."""
    slots: List[SlotPayload] = Field(default_factory=list)

    @classmethod
    def from_slots(cls, slots: List[TimeSlot]) -> "FindSlotsResponse":
        return cls(slots=[SlotPayload(**slot.to_dict()) for slot in slots])

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()
