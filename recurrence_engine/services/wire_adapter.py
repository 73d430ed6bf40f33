# recurrence_engine/services/wire_adapter.py
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from recurrence_engine.core.config import get_settings
from recurrence_engine.schemas.event import (
    EventDateTime,
    EventException,
    MasterEvent,
    Occurrence,
)
from recurrence_engine.schemas.recurrence import (
    RangeType,
    Recurrence,
    RecurrenceError,
    RecurrencePattern,
    RecurrenceRange,
    WeeklyPattern,
    parse_wire_date,
)

logger = logging.getLogger(__name__)

_pattern_adapter: TypeAdapter = TypeAdapter(RecurrencePattern)

# Graph emits seven fractional digits ("09:00:00.0000000"); datetime takes six.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def dates_to_strings(dates: Iterable[date]) -> List[str]:
    return [d.isoformat() for d in dates]


def strings_to_dates(values: Iterable[Any]) -> List[date]:
    """
    Parse `YYYY-MM-DD` strings, skipping anything unparseable.
    """
    parsed: List[date] = []
    for value in values or ():
        try:
            parsed.append(parse_wire_date(value))
        except RecurrenceError:
            logger.debug("Skipping invalid date value %r", value)
    return parsed


def parse_graph_datetime(dt_obj: Any) -> EventDateTime:
    """
    Convert calendar API `{dateTime, timeZone}` JSON into an EventDateTime.

    The wall-clock value is kept as-is; an embedded offset or trailing Z
    is dropped because the zone travels in `timeZone`.

    Raises
    ------
    RecurrenceError
        If `dateTime` is missing or not ISO 8601.
    """
    if not isinstance(dt_obj, dict) or not dt_obj.get("dateTime"):
        raise RecurrenceError(f"Missing dateTime in {dt_obj!r}")

    raw = str(dt_obj["dateTime"]).strip()
    if raw.endswith("Z"):
        raw = raw[:-1]
    raw = _FRACTION_RE.sub(r"\1", raw)

    try:
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise RecurrenceError(f"Invalid dateTime {dt_obj['dateTime']!r}") from exc

    return EventDateTime(
        date_time=value.replace(tzinfo=None),
        time_zone=dt_obj.get("timeZone") or "UTC",
    )


def _optional_graph_datetime(dt_obj: Any) -> Optional[EventDateTime]:
    if not dt_obj:
        return None
    try:
        return parse_graph_datetime(dt_obj)
    except RecurrenceError as exc:
        logger.debug("Ignoring override datetime: %s", exc)
        return None


def format_graph_datetime(value: EventDateTime) -> Dict[str, str]:
    return {
        "dateTime": f"{value.date_time:%Y-%m-%dT%H:%M:%S}.0000000",
        "timeZone": value.time_zone,
    }


def _location_name(raw: Any) -> Optional[str]:
    if isinstance(raw, dict):
        return raw.get("displayName") or None
    if isinstance(raw, str):
        return raw or None
    return None


def _range_type(value: Any) -> Any:
    if isinstance(value, str):
        for member in RangeType:
            if member.value.lower() == value.strip().lower():
                return member
    return value


class WireFormatAdapter:
    """
    Maps between the internal recurrence model and the calendar API wire
    schema:

        {
          pattern: {type, interval, daysOfWeek?, firstDayOfWeek?},
          range:   {type, startDate, recurrenceTimeZone, endDate?, numberOfOccurrences?}
        }

    Also builds MasterEvent / EventException values from calendar API
    event JSON so callers never hand raw Graph shapes to the expander.
    """

    @staticmethod
    def to_wire(
        recurrence: Optional[Recurrence],
        time_zone: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Serialize a recurrence. Optional fields are only emitted when they
        apply (daysOfWeek for non-empty weekly patterns, endDate for
        END_DATE ranges, numberOfOccurrences for NUMBERED ranges).

        Returns None when the recurrence, its pattern or its range is missing.
        """
        if recurrence is None or recurrence.pattern is None or recurrence.range is None:
            return None

        pattern = recurrence.pattern
        recurrence_range = recurrence.range

        pattern_out: Dict[str, Any] = {
            "type": getattr(pattern, "type", None),
            "interval": getattr(pattern, "interval", None) or 1,
        }
        if isinstance(pattern, WeeklyPattern) and pattern.days_of_week:
            pattern_out["daysOfWeek"] = [d.value for d in pattern.ordered_days()]
        first_day = getattr(pattern, "first_day_of_week", None)
        if first_day is not None:
            pattern_out["firstDayOfWeek"] = first_day.value

        range_out: Dict[str, Any] = {
            "type": recurrence_range.type.value,
            "startDate": recurrence_range.start_date.isoformat(),
            "recurrenceTimeZone": time_zone or get_settings().DEFAULT_RECURRENCE_TIME_ZONE,
        }
        if recurrence_range.type == RangeType.END_DATE and recurrence_range.end_date:
            range_out["endDate"] = recurrence_range.end_date.isoformat()
        if (
            recurrence_range.type == RangeType.NUMBERED
            and recurrence_range.number_of_occurrences
        ):
            range_out["numberOfOccurrences"] = recurrence_range.number_of_occurrences

        return {"pattern": pattern_out, "range": range_out}

    @staticmethod
    def parse_recurrence(payload: Any) -> Recurrence:
        """
        Strict inverse of `to_wire`.

        Raises
        ------
        RecurrenceError
            If the pattern or range is missing or fails validation.
        """
        if not isinstance(payload, dict):
            raise RecurrenceError("Recurrence payload must be an object")

        pattern_in = payload.get("pattern")
        range_in = payload.get("range")
        if not isinstance(pattern_in, dict) or not isinstance(range_in, dict):
            raise RecurrenceError("Recurrence payload needs both pattern and range")

        pattern_type = pattern_in.get("type")
        interval = pattern_in.get("interval")
        try:
            pattern = _pattern_adapter.validate_python(
                {
                    "type": pattern_type.strip().lower() if isinstance(pattern_type, str) else pattern_type,
                    "interval": 1 if interval is None else interval,
                    "days_of_week": pattern_in.get("daysOfWeek") or [],
                    "first_day_of_week": pattern_in.get("firstDayOfWeek"),
                }
            )
            recurrence_range = RecurrenceRange.model_validate(
                {
                    "type": _range_type(range_in.get("type")),
                    "start_date": range_in.get("startDate"),
                    "end_date": range_in.get("endDate"),
                    "number_of_occurrences": range_in.get("numberOfOccurrences"),
                    "recurrence_time_zone": range_in.get("recurrenceTimeZone"),
                }
            )
        except ValidationError as exc:
            raise RecurrenceError(f"Invalid recurrence payload: {exc}") from exc

        return Recurrence(pattern=pattern, range=recurrence_range)

    @staticmethod
    def from_wire(payload: Any) -> Optional[Recurrence]:
        """
        Lenient inverse of `to_wire`: returns None instead of raising.
        """
        if payload is None:
            return None
        try:
            return WireFormatAdapter.parse_recurrence(payload)
        except RecurrenceError as exc:
            logger.warning("Discarding unusable recurrence: %s", exc)
            return None

    @staticmethod
    def exception_from_graph(payload: Dict[str, Any]) -> EventException:
        """
        Build an EventException from an exception/occurrence event payload.

        The original date is taken from `originalStart` (calendar API) or
        `originalStartDateTime` (event store); unparseable override
        datetimes are dropped so the master's values apply instead.
        """
        original = payload.get("originalStart") or payload.get("originalStartDateTime")

        return EventException(
            event_id=payload.get("id") or payload.get("eventId"),
            original_start=str(original) if original else None,
            is_cancelled=bool(payload.get("isCancelled", False)),
            subject=payload.get("subject"),
            start=_optional_graph_datetime(payload.get("start")),
            end=_optional_graph_datetime(payload.get("end")),
            location=_location_name(payload.get("location")),
        )

    @staticmethod
    def master_from_graph(
        payload: Dict[str, Any],
        exceptions: Iterable[Dict[str, Any]] = (),
    ) -> Optional[MasterEvent]:
        """
        Build a MasterEvent from a series master event payload.

        Returns None when the payload lacks an id or a parseable start/end.
        `additions`/`exclusions` lists inside the recurrence object become
        the ad-hoc date sets.
        """
        event_id = payload.get("id") or payload.get("eventId")
        if not event_id:
            logger.warning("Series master payload has no id; skipping")
            return None

        try:
            start = parse_graph_datetime(payload.get("start"))
            end = parse_graph_datetime(payload.get("end"))
        except RecurrenceError as exc:
            logger.warning("Series master %s has invalid start/end: %s", event_id, exc)
            return None

        recurrence_in = payload.get("recurrence")
        if not isinstance(recurrence_in, dict):
            recurrence_in = {}
        recurrence = WireFormatAdapter.from_wire(recurrence_in) if recurrence_in else None

        parsed_exceptions: List[EventException] = []
        for raw_exception in exceptions or ():
            if not isinstance(raw_exception, dict):
                logger.warning(
                    "Ignoring non-object exception on series %s: %r", event_id, raw_exception
                )
                continue
            try:
                parsed_exceptions.append(WireFormatAdapter.exception_from_graph(raw_exception))
            except ValidationError as exc:
                logger.warning("Ignoring malformed exception on series %s: %s", event_id, exc)

        try:
            return MasterEvent(
                event_id=event_id,
                subject=payload.get("subject") or "",
                start=start,
                end=end,
                location=_location_name(payload.get("location")),
                recurrence=recurrence,
                exceptions=parsed_exceptions,
                ad_hoc_additions=frozenset(strings_to_dates(recurrence_in.get("additions") or [])),
                ad_hoc_exclusions=frozenset(strings_to_dates(recurrence_in.get("exclusions") or [])),
                version=payload.get("version"),
            )
        except ValidationError as exc:
            logger.warning("Series master %s failed validation: %s", event_id, exc)
            return None

    @staticmethod
    def occurrence_to_wire(occurrence: Occurrence) -> Dict[str, Any]:
        return {
            "eventId": occurrence.event_id,
            "seriesMasterId": occurrence.series_master_id,
            "subject": occurrence.subject,
            "start": format_graph_datetime(occurrence.start),
            "end": format_graph_datetime(occurrence.end),
            "location": {"displayName": occurrence.location} if occurrence.location else None,
            "isRecurring": occurrence.is_recurring,
            "isException": occurrence.is_exception,
        }
