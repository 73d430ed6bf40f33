# recurrence_engine/services/expansion_cache.py
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional, Tuple

from recurrence_engine.core.config import get_settings
from recurrence_engine.schemas.event import MasterEvent, Occurrence
from recurrence_engine.services.pattern_matcher import DateLike, as_date
from recurrence_engine.services.series_expander import SeriesExpander

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, Optional[int], date, date]


class ExpansionCache:
    """
    Memoizes SeriesExpander.expand results per series revision and window.

    Keys are (event_id, version, query_start, query_end). Editing a series
    in the store bumps its version, so stale entries are simply never hit
    again; `invalidate()` drops them eagerly.

    Example:
        cache = ExpansionCache(max_size=100)
        occurrences = cache.expand(master, date(2024, 1, 1), date(2024, 1, 31))

    Entries are evicted FIFO once max_size is reached. Callers that share
    one cache across threads must serialize access themselves.
    """

    def __init__(self, max_size: Optional[int] = None) -> None:
        self.max_size = max_size or get_settings().EXPANSION_CACHE_SIZE
        self._entries: "OrderedDict[CacheKey, Tuple[Occurrence, ...]]" = OrderedDict()
        self.stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "invalidations": 0,
        }

    @staticmethod
    def make_key(master: MasterEvent, query_start: DateLike, query_end: DateLike) -> CacheKey:
        return (master.event_id, master.version, as_date(query_start), as_date(query_end))

    def expand(
        self,
        master: MasterEvent,
        query_start: DateLike,
        query_end: DateLike,
    ) -> List[Occurrence]:
        key = self.make_key(master, query_start, query_end)

        cached = self._entries.get(key)
        if cached is not None:
            self.stats["hits"] += 1
            return list(cached)

        self.stats["misses"] += 1
        occurrences = SeriesExpander.expand(master, query_start, query_end)

        if len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            self.stats["evictions"] += 1
            logger.debug("Evicted expansion cache entry for %s", evicted[0])

        self._entries[key] = tuple(occurrences)
        return occurrences

    def invalidate(self, event_id: str) -> int:
        """
        Drop every entry for one series. Returns the number removed.
        """
        stale = [key for key in self._entries if key[0] == event_id]
        for key in stale:
            del self._entries[key]
        if stale:
            self.stats["invalidations"] += 1
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self.stats["invalidations"] += 1

    def __len__(self) -> int:
        return len(self._entries)
