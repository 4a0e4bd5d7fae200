from __future__ import annotations

import threading
import time

import pytest

from yield_risk_lab.cache import TTLCache, cache_key
from yield_risk_lab.errors import FetchError, StaleDataWarning


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


class CountingFetcher:
    def __init__(self, value: object = "fresh") -> None:
        self.value = value
        self.calls = 0
        self.fail = False

    def __call__(self) -> object:
        self.calls += 1
        if self.fail:
            raise FetchError("test", "upstream down")
        return self.value


def test_fresh_entry_is_served_without_refetch() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl=300, clock=clock)
    fetcher = CountingFetcher()

    assert cache.get_or_fetch("k", fetcher) == "fresh"
    clock.now += 299
    assert cache.get_or_fetch("k", fetcher) == "fresh"
    assert fetcher.calls == 1


def test_expired_entry_is_refreshed() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl=300, clock=clock)
    fetcher = CountingFetcher()
    cache.get_or_fetch("k", fetcher)
    clock.now += 300
    fetcher.value = "newer"
    assert cache.get_or_fetch("k", fetcher) == "newer"
    assert fetcher.calls == 2


def test_per_call_ttl_override() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl=300, clock=clock)
    fetcher = CountingFetcher()
    cache.get_or_fetch("k", fetcher)
    clock.now += 10
    cache.get_or_fetch("k", fetcher, ttl=5)
    assert fetcher.calls == 2


def test_stale_value_served_when_refresh_fails() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl=300, clock=clock)
    fetcher = CountingFetcher()
    cache.get_or_fetch("k", fetcher)

    clock.now += 3_600
    fetcher.fail = True
    with pytest.warns(StaleDataWarning):
        assert cache.get_or_fetch("k", fetcher) == "fresh"
    assert fetcher.calls == 2


def test_failure_without_entry_propagates() -> None:
    cache = TTLCache(ttl=300, clock=FakeClock())
    fetcher = CountingFetcher()
    fetcher.fail = True
    with pytest.raises(FetchError):
        cache.get_or_fetch("k", fetcher)
    assert cache.peek("k") is None
    assert len(cache) == 0


def test_concurrent_misses_share_one_fetch() -> None:
    cache = TTLCache(ttl=300)
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow() -> str:
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return "shared"

    results: list[str] = []
    owner = threading.Thread(target=lambda: results.append(cache.get_or_fetch("k", slow)))
    owner.start()
    assert started.wait(timeout=5)
    waiters = [
        threading.Thread(target=lambda: results.append(cache.get_or_fetch("k", slow))) for _ in range(3)
    ]
    for t in waiters:
        t.start()
    time.sleep(0.05)
    release.set()
    for t in [owner, *waiters]:
        t.join(timeout=5)

    assert results == ["shared"] * 4
    assert len(calls) == 1


def test_interrupted_fetch_releases_waiters() -> None:
    cache = TTLCache(ttl=300)
    started = threading.Event()
    release = threading.Event()
    outcomes: list[object] = []

    def interrupted() -> str:
        started.set()
        release.wait(timeout=5)
        raise KeyboardInterrupt

    def call(fetcher) -> None:
        try:
            outcomes.append(cache.get_or_fetch("k", fetcher))
        except BaseException as exc:
            outcomes.append(type(exc))

    owner = threading.Thread(target=call, args=(interrupted,))
    owner.start()
    assert started.wait(timeout=5)
    waiter = threading.Thread(target=call, args=(lambda: "unused",))
    waiter.start()
    time.sleep(0.05)
    release.set()
    owner.join(timeout=5)
    waiter.join(timeout=5)

    assert not waiter.is_alive()
    assert outcomes == [KeyboardInterrupt, KeyboardInterrupt]
    assert cache.get_or_fetch("k", lambda: "recovered") == "recovered"


def test_cache_key_is_order_independent() -> None:
    assert cache_key("prices", ["weth", "ethereum"]) == "prices-ethereum,weth"
    assert cache_key("historical", "abc", 30) == "historical-abc-30"


def test_clear() -> None:
    cache = TTLCache(ttl=300, clock=FakeClock())
    cache.get_or_fetch("k", CountingFetcher())
    cache.clear()
    assert cache.peek("k") is None
