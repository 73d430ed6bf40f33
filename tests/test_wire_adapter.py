# tests/test_wire_adapter.py
import logging
from datetime import date, datetime

import pytest

from recurrence_engine.schemas.event import EventDateTime
from recurrence_engine.schemas.recurrence import (
    DailyPattern,
    DayOfWeek,
    RangeType,
    Recurrence,
    RecurrenceError,
    RecurrenceRange,
    WeeklyPattern,
)
from recurrence_engine.services.series_expander import SeriesExpander
from recurrence_engine.services.wire_adapter import (
    WireFormatAdapter,
    dates_to_strings,
    parse_graph_datetime,
    strings_to_dates,
)


def _weekly_recurrence(**range_kwargs) -> Recurrence:
    range_kwargs.setdefault("type", RangeType.END_DATE)
    range_kwargs.setdefault("end_date", date(2024, 6, 30))
    return Recurrence(
        pattern=WeeklyPattern(days_of_week=["friday", "monday", "wednesday"]),
        range=RecurrenceRange(start_date=date(2024, 3, 1), **range_kwargs),
    )


def _graph_master() -> dict:
    return {
        "id": "AAMk-master",
        "subject": "Team Sync",
        "start": {"dateTime": "2024-01-01T09:30:00.0000000", "timeZone": "Eastern Standard Time"},
        "end": {"dateTime": "2024-01-01T10:00:00.0000000", "timeZone": "Eastern Standard Time"},
        "location": {"displayName": "Room 1"},
        "recurrence": {
            "pattern": {"type": "weekly", "interval": 1, "daysOfWeek": ["Monday", "Wednesday", "Friday"]},
            "range": {"type": "noEnd", "startDate": "2024-01-01", "recurrenceTimeZone": "Eastern Standard Time"},
            "additions": ["2024-01-06"],
            "exclusions": ["2024-01-08", "garbage"],
        },
        "version": 4,
    }


def test_to_wire_returns_none_for_incomplete_recurrence():
    assert WireFormatAdapter.to_wire(None) is None
    assert WireFormatAdapter.to_wire(Recurrence()) is None
    assert WireFormatAdapter.to_wire(Recurrence(pattern=DailyPattern())) is None


def test_to_wire_weekly_end_date():
    payload = WireFormatAdapter.to_wire(_weekly_recurrence())

    assert payload == {
        "pattern": {
            "type": "weekly",
            "interval": 1,
            "daysOfWeek": ["monday", "wednesday", "friday"],
        },
        "range": {
            "type": "endDate",
            "startDate": "2024-03-01",
            "recurrenceTimeZone": "Eastern Standard Time",
            "endDate": "2024-06-30",
        },
    }


def test_to_wire_numbered_omits_unrelated_fields():
    recurrence = Recurrence(
        pattern=DailyPattern(interval=2),
        range=RecurrenceRange(
            type=RangeType.NUMBERED,
            start_date=date(2024, 3, 1),
            number_of_occurrences=10,
            end_date=date(2024, 12, 31),
        ),
    )

    payload = WireFormatAdapter.to_wire(recurrence, "Pacific Standard Time")

    assert payload["pattern"] == {"type": "daily", "interval": 2}
    assert payload["range"]["numberOfOccurrences"] == 10
    assert "endDate" not in payload["range"]
    assert payload["range"]["recurrenceTimeZone"] == "Pacific Standard Time"


def test_to_wire_no_end_and_empty_weekly_days():
    recurrence = Recurrence(
        pattern=WeeklyPattern(days_of_week=[], first_day_of_week="sunday"),
        range=RecurrenceRange(type=RangeType.NO_END, start_date=date(2024, 3, 1)),
    )

    payload = WireFormatAdapter.to_wire(recurrence)

    assert payload["pattern"] == {"type": "weekly", "interval": 1, "firstDayOfWeek": "sunday"}
    assert set(payload["range"]) == {"type", "startDate", "recurrenceTimeZone"}


def test_to_wire_uses_configured_time_zone(monkeypatch):
    monkeypatch.setenv("DEFAULT_RECURRENCE_TIME_ZONE", "UTC")

    payload = WireFormatAdapter.to_wire(_weekly_recurrence())

    assert payload["range"]["recurrenceTimeZone"] == "UTC"


def test_from_wire_parses_payload():
    recurrence = WireFormatAdapter.from_wire(
        {
            "pattern": {"type": "Weekly", "daysOfWeek": ["Monday", "FRIDAY"]},
            "range": {"type": "endDate", "startDate": "2024-03-01", "endDate": "2024-06-30"},
        }
    )

    assert isinstance(recurrence.pattern, WeeklyPattern)
    assert recurrence.pattern.interval == 1
    assert recurrence.pattern.days_of_week == frozenset({DayOfWeek.MONDAY, DayOfWeek.FRIDAY})
    assert recurrence.range.type == RangeType.END_DATE
    assert recurrence.range.end_date == date(2024, 6, 30)


def test_from_wire_inverts_to_wire():
    payload = WireFormatAdapter.to_wire(_weekly_recurrence(), "Eastern Standard Time")

    assert WireFormatAdapter.to_wire(WireFormatAdapter.from_wire(payload), "Eastern Standard Time") == payload


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {},
        {"pattern": {"type": "daily"}},
        {"pattern": {"type": "relativeMonthly", "interval": 1}, "range": {"type": "noEnd", "startDate": "2024-01-01"}},
        {"pattern": {"type": "daily", "interval": 0}, "range": {"type": "noEnd", "startDate": "2024-01-01"}},
        {"pattern": {"type": "daily"}, "range": {"type": "noEnd", "startDate": "01/02/2024"}},
        {"pattern": {"type": "weekly", "daysOfWeek": ["funday"]}, "range": {"type": "noEnd", "startDate": "2024-01-01"}},
    ],
)
def test_from_wire_rejects_malformed_payloads(payload):
    assert WireFormatAdapter.from_wire(payload) is None


def test_parse_recurrence_is_strict():
    with pytest.raises(RecurrenceError):
        WireFormatAdapter.parse_recurrence({"pattern": {"type": "daily"}})


def test_date_string_helpers():
    assert dates_to_strings([date(2024, 1, 5), date(2024, 12, 25)]) == ["2024-01-05", "2024-12-25"]
    assert strings_to_dates(["2024-01-05", "nope", None, "2024-12-25T10:00:00"]) == [
        date(2024, 1, 5),
        date(2024, 12, 25),
    ]


def test_parse_graph_datetime_handles_graph_precision():
    value = parse_graph_datetime({"dateTime": "2024-01-01T09:30:00.0000000", "timeZone": "Pacific Standard Time"})

    assert value == EventDateTime(date_time=datetime(2024, 1, 1, 9, 30), time_zone="Pacific Standard Time")
    assert parse_graph_datetime({"dateTime": "2024-01-01T09:30:00Z"}).time_zone == "UTC"

    with pytest.raises(RecurrenceError):
        parse_graph_datetime({"dateTime": "yesterday"})
    with pytest.raises(RecurrenceError):
        parse_graph_datetime({})


def test_master_from_graph_builds_expandable_series():
    exceptions = [
        {
            "id": "AAMk-exc-1",
            "originalStart": "2024-01-03T14:30:00Z",
            "subject": "Moved Meeting",
            "start": {"dateTime": "2024-01-03T11:00:00.0000000", "timeZone": "Eastern Standard Time"},
            "end": {"dateTime": "2024-01-03T11:30:00.0000000", "timeZone": "Eastern Standard Time"},
        },
        {"id": "AAMk-exc-2", "originalStartDateTime": "2024-01-05T09:30:00", "isCancelled": True},
    ]

    master = WireFormatAdapter.master_from_graph(_graph_master(), exceptions)

    assert master.event_id == "AAMk-master"
    assert master.location == "Room 1"
    assert master.version == 4
    assert master.ad_hoc_additions == frozenset({date(2024, 1, 6)})
    assert master.ad_hoc_exclusions == frozenset({date(2024, 1, 8)})

    occurrences = SeriesExpander.expand(master, date(2024, 1, 1), date(2024, 1, 12))

    assert [o.occurrence_date for o in occurrences] == [
        date(2024, 1, 1),
        date(2024, 1, 3),
        date(2024, 1, 6),
        date(2024, 1, 10),
        date(2024, 1, 12),
    ]
    moved = occurrences[1]
    assert moved.subject == "Moved Meeting"
    assert moved.is_exception is True
    assert moved.start.date_time == datetime(2024, 1, 3, 11, 0)


def test_master_from_graph_rejects_unusable_payloads():
    no_id = _graph_master()
    del no_id["id"]
    bad_start = _graph_master()
    bad_start["start"] = {"dateTime": "soon"}

    assert WireFormatAdapter.master_from_graph(no_id) is None
    assert WireFormatAdapter.master_from_graph(bad_start) is None


def test_master_with_unusable_recurrence_expands_to_nothing():
    payload = _graph_master()
    payload["recurrence"]["pattern"]["type"] = "relativeYearly"

    master = WireFormatAdapter.master_from_graph(payload)

    assert master is not None
    assert master.recurrence is None
    assert SeriesExpander.expand(master, date(2024, 1, 1), date(2024, 12, 31)) == []


def test_occurrence_to_wire_uses_graph_shapes():
    master = WireFormatAdapter.master_from_graph(_graph_master())
    occurrence = SeriesExpander.expand(master, date(2024, 1, 3), date(2024, 1, 3))[0]

    payload = WireFormatAdapter.occurrence_to_wire(occurrence)

    assert payload == {
        "eventId": "AAMk-master-2024-01-03",
        "seriesMasterId": "AAMk-master",
        "subject": "Team Sync",
        "start": {"dateTime": "2024-01-03T09:30:00.0000000", "timeZone": "Eastern Standard Time"},
        "end": {"dateTime": "2024-01-03T10:00:00.0000000", "timeZone": "Eastern Standard Time"},
        "location": {"displayName": "Room 1"},
        "isRecurring": True,
        "isException": False,
    }


def test_master_from_graph_skips_non_object_exceptions(caplog):
    exceptions = [
        "AAMk-exc-9",
        None,
        {"id": "AAMk-exc-2", "originalStartDateTime": "2024-01-05T09:30:00", "isCancelled": True},
    ]

    with caplog.at_level(logging.WARNING, logger="recurrence_engine"):
        master = WireFormatAdapter.master_from_graph(_graph_master(), exceptions)

    assert [e.event_id for e in master.exceptions] == ["AAMk-exc-2"]
    assert "AAMk-exc-9" in caplog.text
