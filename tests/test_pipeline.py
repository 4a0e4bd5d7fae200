from __future__ import annotations

import threading

import pytest

from yield_risk_lab.errors import FetchError
from yield_risk_lab.pipeline import FetchResult, fan_out, first_success


def _boom() -> list[int]:
    raise FetchError("broken", "down")


def test_fan_out_isolates_failures() -> None:
    results = fan_out({"a": lambda: [1], "b": _boom, "c": lambda: [3]})
    assert list(results) == ["a", "b", "c"]
    assert results["a"].data == [1]
    assert results["c"].ok
    assert not results["b"].ok
    assert isinstance(results["b"].error, FetchError)
    with pytest.raises(FetchError):
        results["b"].unwrap()


def test_fan_out_runs_branches_concurrently() -> None:
    barrier = threading.Barrier(3, timeout=5)

    def wait() -> bool:
        barrier.wait()
        return True

    results = fan_out({name: wait for name in "xyz"}, max_workers=3)
    assert all(r.data for r in results.values())


def test_fan_out_empty() -> None:
    assert fan_out({}) == {}


def test_first_success_stops_at_first_working_strategy() -> None:
    calls: list[str] = []

    def strategy(name: str, ok: bool):
        def run() -> str:
            calls.append(name)
            if not ok:
                raise FetchError(name, "down")
            return name

        return run

    result = first_success(
        [("live", strategy("live", False)), ("csv", strategy("csv", True)), ("static", strategy("static", True))]
    )
    assert result == FetchResult.success("csv", "csv")
    assert calls == ["live", "csv"]


def test_first_success_returns_last_failure() -> None:
    result = first_success([("a", _boom), ("b", _boom)])
    assert not result.ok
    assert result.source == "b"
