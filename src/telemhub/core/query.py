"""
Query grammar for stored readings.

A request is one of three mutually exclusive modes: no parameters (latest
reading), ``count`` (last N readings) or ``startDate`` + ``endDate`` (readings
inside an inclusive time window). Any other combination is rejected instead of
silently picking a mode.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Mapping, Optional, Union

from .exceptions import QueryValidationError
from .history import HistoryStore
from .schemas import (EmptyResult, LatestResult, ListResult, QueryResult,
                      ValidationErrorResult)

COUNT = 'count'
START_DATE = 'startDate'
END_DATE = 'endDate'

DATE_FORMAT = 'YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS[.ffffff][+HH:MM|Z]'
USAGE = ("query must be empty, 'count=<n>' for the last n readings, or "
         "'startDate=<date>&endDate=<date>' for readings between two dates")


@dataclass(frozen=True)
class LatestQuery:
    pass


@dataclass(frozen=True)
class CountQuery:
    count: int


@dataclass(frozen=True)
class RangeQuery:
    start: datetime
    end: datetime


Query = Union[LatestQuery, CountQuery, RangeQuery]


def parse_count(raw: str) -> int:
    try:
        count = int(str(raw).strip())
    except ValueError:
        raise QueryValidationError('count must be a valid integer') from None
    if count < 0:
        raise QueryValidationError('count must be a non-negative integer')
    return count


def parse_datetime(raw: str, name: str, tz: Optional[tzinfo] = None, end_of_day: bool = False) -> datetime:
    """
    Parse an ISO 8601 date or date-time into an aware UTC datetime.

    Values without an offset are taken in ``tz`` (the process's local zone when
    ``tz`` is None). A bare date means midnight, or the last instant of that
    day when ``end_of_day`` is set.
    """
    text = str(raw).strip()
    try:
        if len(text) == 10:
            d = date.fromisoformat(text)
            value = datetime.combine(d, time.max if end_of_day else time.min)
        else:
            value = datetime.fromisoformat(text)
        if value.tzinfo is None:
            value = value.replace(tzinfo=tz) if tz is not None else value.astimezone()
        return value.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        # Overflow/OSError: an edge date shifted past year 1 or 9999
        raise QueryValidationError(f"{name} must be a date in the format {DATE_FORMAT}") from None


def parse_query(params: Mapping[str, str], tz: Optional[tzinfo] = None) -> Query:
    keys = set(params)
    if not keys:
        return LatestQuery()
    if keys == {COUNT}:
        return CountQuery(parse_count(params[COUNT]))
    if keys == {START_DATE, END_DATE}:
        start = parse_datetime(params[START_DATE], START_DATE, tz)
        end = parse_datetime(params[END_DATE], END_DATE, tz, end_of_day=True)
        return RangeQuery(start, end)
    raise QueryValidationError(USAGE)


def execute(store: HistoryStore, query: Query, channel: str = '') -> QueryResult:
    if isinstance(query, LatestQuery):
        reading = store.latest()
        if reading is None:
            return EmptyResult(channel=channel)
        return LatestResult(channel=channel, reading=reading)
    if isinstance(query, CountQuery):
        window = store.last_n(query.count)
        if window is None:
            return EmptyResult(channel=channel)
        return ListResult(channel=channel, readings=window.readings,
                          partial=window.partial, note=window.note)
    if isinstance(query, RangeQuery):
        readings = store.range(query.start, query.end)
        if readings is None:
            return EmptyResult(channel=channel)
        return ListResult(channel=channel, readings=readings)
    raise TypeError(f"unsupported query {query!r}")


def run_query(store: HistoryStore, params: Mapping[str, str],
              tz: Optional[tzinfo] = None, channel: str = '') -> QueryResult:
    # no data wins over parameter parsing
    if store.is_empty():
        return EmptyResult(channel=channel)
    try:
        query = parse_query(params, tz)
    except QueryValidationError as e:
        return ValidationErrorResult(message=str(e))
    return execute(store, query, channel)
