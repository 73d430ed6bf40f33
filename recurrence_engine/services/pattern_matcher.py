# recurrence_engine/services/pattern_matcher.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Union

from recurrence_engine.schemas.recurrence import (
    DailyPattern,
    DayOfWeek,
    MonthlyPattern,
    WeeklyPattern,
    YearlyPattern,
)

DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
    """
    Normalize a datetime to its calendar date (local midnight); dates pass through.
    """
    if isinstance(value, datetime):
        return value.date()
    return value


class PatternMatcher:
    """
    Pure predicate answering "does this calendar date satisfy the pattern,
    anchored at start_date?".

    Rules
    -----
    - Dates before start_date never match.
    - Daily:   days since start is a multiple of interval.
    - Weekly:  weekday is in days_of_week AND whole weeks since start is a
               multiple of interval. Empty days_of_week matches nothing.
    - Monthly: same day-of-month as start AND months since start is a
               multiple of interval. Months lacking that day are skipped.
    - Yearly:  same month and day as start AND years since start is a
               multiple of interval.
    - Anything else (None, unknown variant) never matches.
    """

    @staticmethod
    def matches(day: DateLike, pattern: Any, start_date: DateLike) -> bool:
        if pattern is None or day is None or start_date is None:
            return False

        day = as_date(day)
        start = as_date(start_date)
        if day < start:
            return False

        interval = getattr(pattern, "interval", None)
        if not isinstance(interval, int) or interval < 1:
            return False

        if isinstance(pattern, DailyPattern):
            return (day - start).days % interval == 0

        if isinstance(pattern, WeeklyPattern):
            if not pattern.days_of_week:
                return False
            if DayOfWeek.for_date(day) not in pattern.days_of_week:
                return False
            weeks = (day - start).days // 7
            return weeks % interval == 0

        if isinstance(pattern, MonthlyPattern):
            months = (day.year - start.year) * 12 + (day.month - start.month)
            return day.day == start.day and months % interval == 0

        if isinstance(pattern, YearlyPattern):
            return (
                day.month == start.month
                and day.day == start.day
                and (day.year - start.year) % interval == 0
            )

        return False
