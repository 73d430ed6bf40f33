# recurrence_engine/services/range_bounds.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Tuple

from recurrence_engine.schemas.recurrence import RangeType, RecurrenceRange
from recurrence_engine.services.pattern_matcher import DateLike, as_date

logger = logging.getLogger(__name__)


class RangeBounds:
    """
    Intersects a recurrence range with a caller-supplied query window.

    Both ends of the window are inclusive calendar dates.
    """

    @staticmethod
    def clip(
        recurrence_range: Optional[RecurrenceRange],
        query_start: DateLike,
        query_end: DateLike,
    ) -> Optional[Tuple[date, date]]:
        """
        Return (effective_start, effective_end), or None when the window is empty.

        Rules
        -----
        - effective_start = max(query_start, range.start_date)
        - effective_end   = min(query_end, range.end_date) for END_DATE ranges,
                            query_end otherwise
        - NUMBERED ranges are not clipped here; the expander enforces the
          occurrence ceiling.
        - A missing or malformed range, or a missing query bound, yields
          an empty window.
        """
        if recurrence_range is None:
            return None

        if not isinstance(query_start, date) or not isinstance(query_end, date):
            logger.debug("Query window %r..%r is not a pair of dates", query_start, query_end)
            return None

        if not recurrence_range.is_well_formed:
            logger.debug(
                "Range of type %s is missing its required field; treating as empty",
                recurrence_range.type.value,
            )
            return None

        effective_start = max(as_date(query_start), recurrence_range.start_date)
        effective_end = as_date(query_end)

        if recurrence_range.type == RangeType.END_DATE:
            effective_end = min(effective_end, recurrence_range.end_date)

        if effective_start > effective_end:
            return None

        return effective_start, effective_end
