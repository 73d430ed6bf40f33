# recurrence_engine/services/summary_formatter.py
from __future__ import annotations

from datetime import date
from typing import Any, Iterable, List, Optional, Union

from recurrence_engine.core.config import get_settings
from recurrence_engine.schemas.recurrence import (
    DailyPattern,
    DayOfWeek,
    MonthlyPattern,
    RangeType,
    RecurrenceError,
    RecurrenceRange,
    WeeklyPattern,
    YearlyPattern,
    parse_wire_date,
)
from recurrence_engine.schemas.summary import EnhancedSummary, SummaryDate, SummaryDateTag

DAY_ABBREVIATIONS = {
    DayOfWeek.SUNDAY: "Su",
    DayOfWeek.MONDAY: "M",
    DayOfWeek.TUESDAY: "Tu",
    DayOfWeek.WEDNESDAY: "W",
    DayOfWeek.THURSDAY: "Th",
    DayOfWeek.FRIDAY: "F",
    DayOfWeek.SATURDAY: "S",
}

_UNITS = (
    (DailyPattern, "day", "days"),
    (MonthlyPattern, "month", "months"),
    (YearlyPattern, "year", "years"),
)


def _every(interval: int, singular: str, plural: str) -> str:
    return singular if interval == 1 else f"{interval} {plural}"


_MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def format_long_date(value: date) -> str:
    """'Jun 30, 2024' independent of the process locale."""
    return f"{_MONTH_ABBREVIATIONS[value.month - 1]} {value.day}, {value.year}"


def default_first_day() -> DayOfWeek:
    try:
        return DayOfWeek(get_settings().DEFAULT_FIRST_DAY_OF_WEEK)
    except ValueError:
        return DayOfWeek.SUNDAY


def _calendar_dates(values: Any) -> List[date]:
    """
    Dates or `YYYY-MM-DD` strings, de-duplicated and sorted; unparseable
    values are dropped.
    """
    parsed = set()
    for value in values or ():
        try:
            parsed.add(parse_wire_date(value))
        except RecurrenceError:
            continue
    return sorted(parsed)


def format_short_date(value: date) -> str:
    """'6/30' month/day without leading zeros."""
    return f"{value.month}/{value.day}"


class SummaryFormatter:
    """
    Renders a recurrence pattern and range as human-readable text.

    Output examples
    ---------------
    - "Occurs every day"
    - "Occurs every 2 weeks"
    - "Occurs every M, W, F"
    - "Occurs every 2 weeks on Tu, Th\\nUntil Jun 30, 2024"
    - "Occurs every month\\nFor 10 occurrences"

    Pure functions of their inputs; a missing or unrecognized pattern
    yields an empty string.
    """

    @staticmethod
    def format(pattern: Any, recurrence_range: Optional[RecurrenceRange] = None) -> str:
        head = SummaryFormatter._pattern_phrase(pattern)
        if not head:
            return ""

        summary = f"Occurs every {head}"
        tail = SummaryFormatter._range_phrase(recurrence_range)
        if tail:
            summary += f"\n{tail}"
        return summary

    @staticmethod
    def format_enhanced(
        pattern: Any,
        recurrence_range: Optional[RecurrenceRange] = None,
        additions: Iterable[Union[date, str]] = (),
        exclusions: Iterable[Union[date, str]] = (),
    ) -> EnhancedSummary:
        """
        Summary text plus tagged ad-hoc dates (additions first, then
        exclusions, each in ascending date order). Dates may be given as
        `date` objects or `YYYY-MM-DD` strings.
        """
        if SummaryFormatter._pattern_phrase(pattern) == "":
            return EnhancedSummary(base="", dates=[])

        dates: List[SummaryDate] = []
        for tag, values in (
            (SummaryDateTag.ADDED, additions),
            (SummaryDateTag.EXCLUDED, exclusions),
        ):
            for value in _calendar_dates(values):
                dates.append(SummaryDate(day=value, text=format_short_date(value), tag=tag))

        return EnhancedSummary(
            base=SummaryFormatter.format(pattern, recurrence_range),
            dates=dates,
        )

    @staticmethod
    def _pattern_phrase(pattern: Any) -> str:
        interval = getattr(pattern, "interval", None)
        if not isinstance(interval, int) or interval < 1:
            return ""

        if isinstance(pattern, WeeklyPattern):
            weeks = _every(interval, "week", "weeks")
            if not pattern.days_of_week:
                return weeks

            first_day = pattern.first_day_of_week or default_first_day()
            days = ", ".join(DAY_ABBREVIATIONS[d] for d in pattern.ordered_days(first_day))
            if interval == 1:
                return days
            return f"{weeks} on {days}"

        for kind, singular, plural in _UNITS:
            if isinstance(pattern, kind):
                return _every(interval, singular, plural)

        return ""

    @staticmethod
    def _range_phrase(recurrence_range: Optional[RecurrenceRange]) -> str:
        if recurrence_range is None:
            return ""

        if recurrence_range.type == RangeType.END_DATE and recurrence_range.end_date:
            return f"Until {format_long_date(recurrence_range.end_date)}"

        count = recurrence_range.number_of_occurrences
        if recurrence_range.type == RangeType.NUMBERED and count:
            return f"For {count} occurrence{'s' if count > 1 else ''}"

        return ""
