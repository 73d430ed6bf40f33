# recurrence_engine/schemas/recurrence.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecurrenceError(ValueError):
    """
    Raised by strict parsing helpers when a recurrence value cannot be
    interpreted (bad date string, unknown pattern type, ...).

    Public engine operations catch it and degrade to an empty result.
    """


class DayOfWeek(str, Enum):
    """
    Day names as used on the wire (lowercase).
    """

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @classmethod
    def _missing_(cls, value: object) -> Optional["DayOfWeek"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @classmethod
    def for_date(cls, day: date) -> "DayOfWeek":
        # date.weekday(): Monday == 0
        return _PY_WEEKDAYS[day.weekday()]

    @property
    def week_index(self) -> int:
        """Position in a Sunday-first week (Sunday == 0)."""
        return WEEK_ORDER.index(self)


WEEK_ORDER = (
    DayOfWeek.SUNDAY,
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
)

_PY_WEEKDAYS = WEEK_ORDER[1:] + WEEK_ORDER[:1]


class PatternType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RangeType(str, Enum):
    END_DATE = "endDate"
    NUMBERED = "numbered"
    NO_END = "noEnd"


def _lower_day(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class _PatternBase(BaseModel):
    """
    Fields shared by every recurrence pattern variant.
    """

    model_config = ConfigDict(frozen=True)

    interval: int = Field(
        1,
        ge=1,
        description="Repeat every N units (days, weeks, months or years).",
        examples=[1],
    )
    first_day_of_week: Optional[DayOfWeek] = Field(
        None,
        description=(
            "Advisory week start carried through the wire format. It does not "
            "affect matching; summaries use it to order day abbreviations."
        ),
        examples=["sunday"],
    )

    @field_validator("first_day_of_week", mode="before")
    @classmethod
    def _normalize_first_day(cls, value: Any) -> Any:
        return _lower_day(value)


class DailyPattern(_PatternBase):
    type: Literal["daily"] = "daily"


class WeeklyPattern(_PatternBase):
    type: Literal["weekly"] = "weekly"
    days_of_week: frozenset[DayOfWeek] = Field(
        default_factory=frozenset,
        description="Days the series occurs on. An empty set matches nothing.",
        examples=[["monday", "wednesday", "friday"]],
    )

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _normalize_days(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return [_lower_day(v) for v in value]

    def ordered_days(self, first_day: Optional[DayOfWeek] = None) -> list[DayOfWeek]:
        """
        Days sorted in calendar order, starting from `first_day` (Sunday by default).
        """
        offset = (first_day or DayOfWeek.SUNDAY).week_index
        return sorted(self.days_of_week, key=lambda d: (d.week_index - offset) % 7)


class MonthlyPattern(_PatternBase):
    type: Literal["monthly"] = "monthly"


class YearlyPattern(_PatternBase):
    type: Literal["yearly"] = "yearly"


RecurrencePattern = Annotated[
    Union[DailyPattern, WeeklyPattern, MonthlyPattern, YearlyPattern],
    Field(discriminator="type"),
]


class RecurrenceRange(BaseModel):
    """
    Temporal bound of a recurrence pattern.

    `start_date` anchors all interval arithmetic. `end_date` is required
    for END_DATE ranges and `number_of_occurrences` for NUMBERED ranges;
    a range missing its required field is treated as empty by the engine.
    """

    model_config = ConfigDict(frozen=True)

    type: RangeType = Field(..., examples=["noEnd"])
    start_date: date = Field(..., examples=["2024-01-01"])
    end_date: Optional[date] = Field(
        None,
        description="Last date (inclusive) the series may occur on. END_DATE only.",
        examples=["2024-06-30"],
    )
    number_of_occurrences: Optional[int] = Field(
        None,
        ge=1,
        description="Total pattern occurrences counted from start_date. NUMBERED only.",
        examples=[10],
    )
    recurrence_time_zone: Optional[str] = Field(
        None,
        description="Time zone name the range was authored in, if known.",
        examples=["Eastern Standard Time"],
    )

    @property
    def is_well_formed(self) -> bool:
        if self.type == RangeType.END_DATE:
            return self.end_date is not None
        if self.type == RangeType.NUMBERED:
            return self.number_of_occurrences is not None
        return True


class Recurrence(BaseModel):
    """
    A pattern plus the range it applies to. Either part may be missing on
    malformed input; the engine then produces no occurrences.
    """

    model_config = ConfigDict(frozen=True)

    pattern: Optional[RecurrencePattern] = None
    range: Optional[RecurrenceRange] = None


def parse_wire_date(value: Union[str, date, datetime, None]) -> date:
    """
    Parse a calendar date from `YYYY-MM-DD`, or truncate an ISO datetime
    (string or object) to its date portion.

    Raises
    ------
    RecurrenceError
        If the value is missing or not a recognizable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        raise RecurrenceError(f"Invalid calendar date: {value!r}")

    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise RecurrenceError(f"Invalid calendar date: {value!r}") from exc
