from __future__ import annotations

"""Concurrent fan-out over independent fetches and ordered fallback chains."""

from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one fetch branch: either ``data`` or the ``error`` raised."""

    source: str
    data: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source: str, data: T) -> "FetchResult[T]":
        return cls(source=source, data=data)

    @classmethod
    def failure(cls, source: str, error: Exception) -> "FetchResult[T]":
        return cls(source=source, error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.data  # type: ignore[return-value]


def run_branch(name: str, fn: Callable[[], T]) -> FetchResult[T]:
    try:
        return FetchResult.success(name, fn())
    except Exception as exc:
        logger.warning("Branch %s failed: %s", name, exc)
        return FetchResult.failure(name, exc)


def fan_out(
    branches: Mapping[str, Callable[[], T]], max_workers: int = DEFAULT_MAX_WORKERS
) -> dict[str, FetchResult[T]]:
    """Run every branch concurrently and collect one :class:`FetchResult` each.

    A failing branch never cancels its siblings.  Results are keyed by branch
    name in the order the branches were given.
    """

    if not branches:
        return {}
    workers = max(1, min(max_workers, len(branches)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {name: pool.submit(run_branch, name, fn) for name, fn in branches.items()}
        return {name: future.result() for name, future in futures.items()}


def first_success(strategies: Iterable[tuple[str, Callable[[], T]]]) -> FetchResult[T]:
    """Try ``strategies`` in order and return the first successful result.

    When every strategy fails the last failure is returned.
    """

    last: FetchResult[T] | None = None
    for name, fn in strategies:
        result = run_branch(name, fn)
        if result.ok:
            logger.info("Using data from %s", name)
            return result
        last = result
    if last is None:
        raise ValueError("no strategies given")
    return last


__all__ = ["DEFAULT_MAX_WORKERS", "FetchResult", "fan_out", "first_success", "run_branch"]
