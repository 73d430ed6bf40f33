# recurrence_engine/services/series_expander.py
from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional

from recurrence_engine.schemas.event import (
    EventDateTime,
    EventException,
    MasterEvent,
    Occurrence,
)
from recurrence_engine.schemas.recurrence import RangeType, RecurrenceRange
from recurrence_engine.services.pattern_matcher import DateLike, PatternMatcher, as_date
from recurrence_engine.services.range_bounds import RangeBounds

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """
    Yield every calendar date from start to end, inclusive.
    """
    current = start
    while current <= end:
        yield current
        current += ONE_DAY


def occurrence_event_id(master_id: str, day: date) -> str:
    return f"{master_id}-{day.isoformat()}"


class SeriesExpander:
    """
    Expands a MasterEvent into concrete Occurrences within a query window.

    Steps
    -----
    1) Clip the query window against the recurrence range.
    2) Walk the window one day at a time.
    3) A date is a candidate if it matches the pattern or is an ad-hoc
       addition, and it is not an ad-hoc exclusion.
    4) Candidates are overlaid with exceptions:
        - cancelled exception      => skipped
        - non-cancelled exception  => occurrence built from its overrides
        - no exception             => occurrence synthesized from the master
    5) NUMBERED ranges stop once number_of_occurrences pattern dates,
       counted from range.start_date, have been walked.

    Note
    ----
    - The result is a fresh list on every call; nothing is cached here
      (see ExpansionCache for memoization).
    - Malformed input produces an empty list, never an error.
    """

    @staticmethod
    def expand(
        master: MasterEvent,
        query_start: DateLike,
        query_end: DateLike,
    ) -> List[Occurrence]:
        recurrence = master.recurrence
        if recurrence is None or recurrence.pattern is None or recurrence.range is None:
            logger.debug("Event %s has no usable recurrence; nothing to expand", master.event_id)
            return []

        pattern = recurrence.pattern
        recurrence_range = recurrence.range

        window = RangeBounds.clip(recurrence_range, query_start, query_end)
        if window is None:
            return []
        effective_start, effective_end = window

        anchor = recurrence_range.start_date
        ceiling: Optional[int] = None
        walk_from = effective_start
        if recurrence_range.type == RangeType.NUMBERED:
            ceiling = recurrence_range.number_of_occurrences
            # Slots before the window still count toward the ceiling.
            walk_from = anchor

        exceptions = SeriesExpander._index_exceptions(master.event_id, master.exceptions)
        additions = master.ad_hoc_additions
        exclusions = master.ad_hoc_exclusions

        occurrences: List[Occurrence] = []
        slots_used = 0

        for day in iter_days(walk_from, effective_end):
            in_pattern = PatternMatcher.matches(day, pattern, anchor)
            if in_pattern:
                slots_used += 1

            if (
                day >= effective_start
                and (in_pattern or day in additions)
                and day not in exclusions
            ):
                exception = exceptions.get(day)
                if exception is None:
                    occurrences.append(SeriesExpander._synthesize(master, day))
                elif not exception.is_cancelled:
                    occurrences.append(SeriesExpander._from_exception(master, exception, day))

            if ceiling is not None and slots_used >= ceiling:
                break

        logger.debug(
            "Expanded series %s over %s..%s: %d occurrence(s)",
            master.event_id,
            effective_start,
            effective_end,
            len(occurrences),
        )
        return occurrences

    @staticmethod
    def _index_exceptions(
        master_id: str,
        exceptions: Iterable[EventException],
    ) -> Dict[date, EventException]:
        """
        Map exceptions by the date they override. The first exception for a
        date wins; exceptions without a usable original date are ignored.
        """
        indexed: Dict[date, EventException] = {}
        for exception in exceptions:
            original = exception.original_date
            if original is None:
                logger.warning(
                    "Ignoring exception %r on series %s: invalid original start %r",
                    exception.event_id,
                    master_id,
                    exception.original_start,
                )
                continue
            indexed.setdefault(original, exception)
        return indexed

    @staticmethod
    def _move_to(value: EventDateTime, day: date) -> EventDateTime:
        return EventDateTime(
            date_time=datetime.combine(day, value.date_time.time()),
            time_zone=value.time_zone,
        )

    @staticmethod
    def _synthesize(master: MasterEvent, day: date) -> Occurrence:
        """
        Build an occurrence from the master, moving start/end onto `day`
        while keeping their time of day (and the end's day offset).
        """
        day_offset = master.end.date_time.date() - master.start.date_time.date()
        return Occurrence(
            event_id=occurrence_event_id(master.event_id, day),
            series_master_id=master.event_id,
            occurrence_date=day,
            subject=master.subject,
            start=SeriesExpander._move_to(master.start, day),
            end=SeriesExpander._move_to(master.end, day + day_offset),
            location=master.location,
            is_recurring=True,
            is_exception=False,
        )

    @staticmethod
    def _from_exception(
        master: MasterEvent,
        exception: EventException,
        day: date,
    ) -> Occurrence:
        base = SeriesExpander._synthesize(master, day)
        return base.model_copy(
            update={
                "event_id": exception.event_id or base.event_id,
                "subject": exception.subject if exception.subject is not None else base.subject,
                "start": exception.start or base.start,
                "end": exception.end or base.end,
                "location": exception.location if exception.location is not None else base.location,
                "is_exception": True,
            }
        )


def calculate_recurrence_dates(
    pattern,
    recurrence_range: Optional[RecurrenceRange],
    view_month: DateLike,
) -> List[date]:
    """
    All pattern dates inside the calendar month containing `view_month`.

    Used for month grids: no exception overlay and no occurrence ceiling,
    only the range start and (for END_DATE ranges) end date are applied.
    """
    if pattern is None or recurrence_range is None:
        return []

    month = as_date(view_month)
    month_start = month.replace(day=1)
    month_end = month.replace(day=calendar.monthrange(month.year, month.month)[1])

    window = RangeBounds.clip(recurrence_range, month_start, month_end)
    if window is None:
        return []

    return [
        day
        for day in iter_days(*window)
        if PatternMatcher.matches(day, pattern, recurrence_range.start_date)
    ]
