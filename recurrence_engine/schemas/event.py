# recurrence_engine/schemas/event.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from recurrence_engine.schemas.recurrence import (
    Recurrence,
    RecurrenceError,
    parse_wire_date,
)


class EventDateTime(BaseModel):
    """
    Wall-clock datetime with its time zone name carried alongside,
    mirroring the calendar API `{dateTime, timeZone}` shape.

    `date_time` is naive local time; the zone is never embedded in it.
    """

    model_config = ConfigDict(frozen=True)

    date_time: datetime = Field(..., examples=["2024-01-01T09:00:00"])
    time_zone: str = Field("UTC", examples=["Eastern Standard Time"])


class EventException(BaseModel):
    """
    Per-date override of a single occurrence in a series.

    Created externally when a user edits or deletes one occurrence; the
    engine only reads it. The override fields are applied when the
    exception is not cancelled; absent fields fall back to the master.
    """

    event_id: Optional[str] = Field(
        None,
        description="Identifier of the exception instance in the event store, if any.",
    )
    original_start: Optional[str] = Field(
        None,
        description=(
            "Recorded original start of the overridden occurrence, as an ISO "
            "date or datetime string."
        ),
        examples=["2024-01-03T09:00:00.0000000"],
    )
    is_cancelled: bool = Field(
        False,
        description="True if the occurrence was deleted for this date.",
    )
    subject: Optional[str] = None
    start: Optional[EventDateTime] = None
    end: Optional[EventDateTime] = None
    location: Optional[str] = None

    @property
    def original_date(self) -> Optional[date]:
        """
        Calendar date this exception overrides, or None if the recorded
        original start is missing or malformed.
        """
        try:
            return parse_wire_date(self.original_start)
        except RecurrenceError:
            return None


class MasterEvent(BaseModel):
    """
    Series definition owned by the external event store.
    """

    event_id: str = Field(..., examples=["AAMkAGI2"])
    subject: str = ""
    start: EventDateTime
    end: EventDateTime
    location: Optional[str] = None
    recurrence: Optional[Recurrence] = None
    exceptions: list[EventException] = Field(default_factory=list)
    ad_hoc_additions: frozenset[date] = Field(
        default_factory=frozenset,
        description="One-off extra dates outside the pattern.",
    )
    ad_hoc_exclusions: frozenset[date] = Field(
        default_factory=frozenset,
        description="Pattern dates to suppress without a full exception record.",
    )
    version: Optional[int] = Field(
        None,
        description="Store revision, bumped on edit. Used as part of cache keys.",
    )


class Occurrence(BaseModel):
    """
    A concrete dated instance produced by expanding a series.

    Occurrences are transient: they are rebuilt on every expansion call.
    """

    event_id: str = Field(..., examples=["AAMkAGI2-2024-01-03"])
    series_master_id: str = Field(..., examples=["AAMkAGI2"])
    occurrence_date: date = Field(
        ...,
        description="Calendar date of the pattern slot this occurrence fills.",
    )
    subject: str = ""
    start: EventDateTime
    end: EventDateTime
    location: Optional[str] = None
    is_recurring: bool = True
    is_exception: bool = False
