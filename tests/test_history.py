import threading

import pytest

from telemhub.core.history import HistoryStore
from conftest import reading, ts


def test_fifo_eviction_keeps_most_recent():
    store = HistoryStore(capacity=5)
    for i in range(12):
        store.append(reading(i))
    assert len(store) == 5
    assert store.evicted == 7
    assert store.appended == 12
    assert [r.timestamp for r in store.last_n(5).readings] == [ts(i) for i in range(11, 6, -1)]


def test_capacity_two_scenario():
    store = HistoryStore(capacity=2)
    for i in (1, 2, 3):
        store.append(reading(i))
    assert store.latest().timestamp == ts(3)
    window = store.last_n(5)
    assert [r.timestamp for r in window.readings] == [ts(3), ts(2)]
    assert window.partial
    assert '2 updates' in window.note


def test_last_n_full_result_has_no_note():
    store = HistoryStore(capacity=10)
    for i in range(4):
        store.append(reading(i))
    window = store.last_n(4)
    assert not window.partial
    assert window.note is None
    assert [r.timestamp for r in window.readings] == [ts(3), ts(2), ts(1), ts(0)]


def test_last_n_zero_is_empty_not_missing():
    store = HistoryStore()
    store.append(reading(1))
    window = store.last_n(0)
    assert window is not None
    assert window.readings == []
    assert not window.partial


@pytest.mark.parametrize('n', [-1, 1.5, True, '3'])
def test_last_n_rejects_bad_n(n):
    store = HistoryStore()
    store.append(reading(1))
    with pytest.raises(ValueError):
        store.last_n(n)


def test_empty_store_reports_no_data():
    store = HistoryStore()
    assert store.is_empty()
    assert store.latest() is None
    assert store.last_n(3) is None
    assert store.range(ts(0), ts(10)) is None


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        HistoryStore(capacity=0)


def test_range_is_inclusive_and_newest_first():
    store = HistoryStore()
    for i in range(10):
        store.append(reading(i))
    got = store.range(ts(3), ts(6))
    assert [r.timestamp for r in got] == [ts(6), ts(5), ts(4), ts(3)]
    inside = {r.timestamp for r in got}
    for i in range(10):
        assert (ts(i) in inside) == (3 <= i <= 6)


def test_range_with_start_after_end_is_empty():
    store = HistoryStore()
    store.append(reading(1))
    assert store.range(ts(5), ts(1)) == []


def test_concurrent_appends_and_reads_stay_bounded():
    store = HistoryStore(capacity=50)
    errors = []

    def writer(offset):
        for i in range(500):
            store.append(reading(offset + i))

    def reader():
        for _ in range(500):
            window = store.last_n(60)
            if window is not None and len(window.readings) > 50:
                errors.append(len(window.readings))

    threads = [threading.Thread(target=writer, args=(k * 1000,)) for k in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert not errors
    assert len(store) == 50
    assert store.appended == 2000
    assert store.evicted == 1950
