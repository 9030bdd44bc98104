import threading
import time

import pytest

from statement_insight.pmap import p_map


def test_preserves_input_order_regardless_of_completion():
    def slow_first(x: int) -> int:
        time.sleep(0.05 if x == 0 else 0.0)
        return x * 10

    assert p_map(range(5), slow_first, concurrency=5) == [0, 10, 20, 30, 40]


def test_caps_inflight_calls():
    inflight = 0
    peak = 0
    lock = threading.Lock()

    def work(x: int) -> int:
        nonlocal inflight, peak
        with lock:
            inflight += 1
            peak = max(peak, inflight)
        time.sleep(0.02)
        with lock:
            inflight -= 1
        return x

    assert p_map(range(10), work, concurrency=3) == list(range(10))
    assert 1 < peak <= 3


def test_concurrency_one_runs_inline_in_order():
    seen: list[tuple[int, str]] = []

    def work(x: int) -> int:
        seen.append((x, threading.current_thread().name))
        return x

    p_map(range(4), work, concurrency=1)
    caller = threading.current_thread().name
    assert seen == [(i, caller) for i in range(4)]


def test_pool_threads_use_prefix():
    names: set[str] = set()
    lock = threading.Lock()

    def work(x: int) -> int:
        with lock:
            names.add(threading.current_thread().name)
        return x

    p_map(range(4), work, concurrency=2, thread_name_prefix="si-test")
    assert names and all(n.startswith("si-test") for n in names)


def test_sequential_failure_stops_remaining_items():
    calls: list[int] = []

    def work(x: int) -> int:
        calls.append(x)
        if x == 2:
            raise ValueError("bad item")
        return x

    with pytest.raises(ValueError, match="bad item"):
        p_map(range(5), work, concurrency=1)
    assert calls == [0, 1, 2]


def test_pooled_failure_starts_no_new_work():
    started: list[int] = []
    lock = threading.Lock()

    def work(x: int) -> int:
        with lock:
            started.append(x)
        if x == 0:
            raise RuntimeError("first item failed")
        time.sleep(0.2)
        return x

    with pytest.raises(RuntimeError, match="first item failed"):
        p_map(range(20), work, concurrency=2)

    assert sorted(started) == [0, 1]


@pytest.mark.parametrize("bad", [0, -1, True, 1.5])
def test_rejects_invalid_concurrency(bad):
    with pytest.raises(ValueError):
        p_map([1], lambda x: x, concurrency=bad)


def test_empty_input():
    assert p_map([], lambda x: x, concurrency=4) == []
