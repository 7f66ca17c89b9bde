from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from telemhub.core.exceptions import QueryValidationError
from telemhub.core.history import HistoryStore
from telemhub.core.query import (CountQuery, LatestQuery, RangeQuery, execute,
                                 parse_query, run_query)
from telemhub.core.schemas import EmptyResult, LatestResult, ListResult, ValidationErrorResult
from conftest import reading, ts


@pytest.fixture
def store():
    s = HistoryStore(capacity=2)
    for i in (1, 2, 3):
        s.append(reading(i))
    return s


def test_parse_modes():
    assert parse_query({}) == LatestQuery()
    assert parse_query({'count': ' 3 '}) == CountQuery(3)
    q = parse_query({'startDate': '2024-01-01T00:00:00Z', 'endDate': '2024-01-02T00:00:00Z'})
    assert q == RangeQuery(ts(0), ts(86400))


def test_bad_count():
    with pytest.raises(QueryValidationError, match='integer'):
        parse_query({'count': 'abc'})
    with pytest.raises(QueryValidationError, match='non-negative'):
        parse_query({'count': '-2'})


def test_bad_date_names_format():
    with pytest.raises(QueryValidationError, match='format'):
        parse_query({'startDate': 'x', 'endDate': '2020-01-01T00:00:00'})


@pytest.mark.parametrize('params', [
    {'count': '3', 'startDate': '2020-01-01'},
    {'count': '3', 'startDate': '2020-01-01', 'endDate': '2020-01-02'},
    {'startDate': '2020-01-01'},
    {'limit': '3'},
])
def test_ambiguous_or_unknown_combinations(params):
    with pytest.raises(QueryValidationError, match='count'):
        parse_query(params)


def test_naive_dates_use_given_zone():
    q = parse_query({'startDate': '2020-01-01T00:00:00', 'endDate': '2020-01-01T12:00:00'},
                    tz=ZoneInfo('America/New_York'))
    assert q.start == datetime(2020, 1, 1, 5, tzinfo=timezone.utc)
    assert q.end == datetime(2020, 1, 1, 17, tzinfo=timezone.utc)


def test_naive_dates_default_to_local_zone():
    q = parse_query({'startDate': '2020-06-01T08:30:00', 'endDate': '2020-06-01T09:00:00'})
    assert q.start == datetime(2020, 6, 1, 8, 30).astimezone().astimezone(timezone.utc)


def test_date_only_end_covers_whole_day():
    q = parse_query({'startDate': '2024-01-01', 'endDate': '2024-01-01'}, tz=timezone.utc)
    assert q.start == ts(0)
    assert q.end == datetime(2024, 1, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)


def test_explicit_offset_is_honoured():
    q = parse_query({'startDate': '2024-01-01T02:00:00+02:00', 'endDate': '2024-01-01T00:00:00Z'},
                    tz=ZoneInfo('Asia/Tokyo'))
    assert q.start == q.end == ts(0)


def test_run_query_latest(store):
    result = run_query(store, {}, channel='barometer')
    assert isinstance(result, LatestResult)
    assert result.reading.timestamp == ts(3)
    assert result.channel == 'barometer'


def test_run_query_partial_count(store):
    result = run_query(store, {'count': '5'})
    assert isinstance(result, ListResult)
    assert [r.timestamp for r in result.readings] == [ts(3), ts(2)]
    assert result.partial
    assert '2 updates' in result.note


def test_run_query_range(store):
    result = run_query(store, {'startDate': ts(2).isoformat(), 'endDate': ts(2).isoformat()})
    assert isinstance(result, ListResult)
    assert [r.timestamp for r in result.readings] == [ts(2)]
    assert not result.partial


def test_run_query_validation_error(store):
    result = run_query(store, {'count': 'abc'})
    assert isinstance(result, ValidationErrorResult)
    assert 'integer' in result.message


@pytest.mark.parametrize('params', [{}, {'count': '2'}, {'count': 'abc'}])
def test_empty_store_wins_over_params(params):
    assert isinstance(run_query(HistoryStore(), params), EmptyResult)


def test_execute_on_empty_store():
    s = HistoryStore()
    for q in (LatestQuery(), CountQuery(1), RangeQuery(ts(0), ts(1))):
        assert execute(s, q).kind == 'empty'


@pytest.mark.parametrize('params, zone', [
    ({'startDate': '0001-01-01', 'endDate': '2024-01-02'}, 'Asia/Tokyo'),
    ({'startDate': '2024-01-01', 'endDate': '9999-12-31'}, 'America/New_York'),
])
def test_calendar_edge_dates_are_rejected(store, params, zone):
    with pytest.raises(QueryValidationError, match='format'):
        parse_query(params, tz=ZoneInfo(zone))
    result = run_query(store, params, tz=ZoneInfo(zone))
    assert isinstance(result, ValidationErrorResult)
    assert 'format' in result.message


def test_calendar_edge_dates_that_fit_are_accepted():
    q = parse_query({'startDate': '0001-01-01', 'endDate': '9999-12-31'}, tz=timezone.utc)
    assert q.start.year == 1
    assert q.end.year == 9999
