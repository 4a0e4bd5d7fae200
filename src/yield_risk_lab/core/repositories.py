"""In-memory repositories for YieldRiskLab data models."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator

import pandas as pd

from .constants import RANKING_TVL_UNIT
from .models import HistoricalDataPoint, Pool


def risk_adjusted_score(pool: Pool) -> float:
    """Rank key ``apy * sqrt(tvl / 1M)``.

    High yield is rewarded but dampened by the square root of scale so tiny
    outlier pools do not dominate the ranking.
    """

    if pool.tvl_usd <= 0:
        return 0.0
    return pool.apy * math.sqrt(pool.tvl_usd / RANKING_TVL_UNIT)


class PoolRepository:
    """Lightweight in-memory collection with pandas export."""

    def __init__(self, pools: Iterable[Pool] | None = None) -> None:
        self._pools: list[Pool] = list(pools) if pools else []

    def add(self, pool: Pool) -> None:
        self._pools.append(pool)

    def extend(self, items: Iterable[Pool]) -> None:
        self._pools.extend(items)

    def filter(
        self,
        *,
        min_tvl: float = 0.0,
        min_apy: float = 0.0,
        max_apy: float | None = None,
        chains: list[str] | None = None,
        projects: list[str] | None = None,
        symbols: list[str] | None = None,
    ) -> "PoolRepository":
        """Return a new repository with the pools matching every criterion.

        ``chains`` compare case-insensitively, ``projects`` match by substring
        and ``symbols`` match any component token of the pool symbol.
        """

        chain_set = {c.lower() for c in chains} if chains else None
        project_keys = [p.lower() for p in projects] if projects else None
        symbol_set = {s.upper() for s in symbols} if symbols else None
        res: list[Pool] = []
        for pool in self._pools:
            if pool.tvl_usd < min_tvl:
                continue
            if pool.apy < min_apy:
                continue
            if max_apy is not None and pool.apy >= max_apy:
                continue
            if chain_set and pool.chain.lower() not in chain_set:
                continue
            if project_keys and not any(key in pool.project.lower() for key in project_keys):
                continue
            if symbol_set and not symbol_set.intersection(pool.tokens):
                continue
            res.append(pool)
        return PoolRepository(res)

    def ranked(self) -> "PoolRepository":
        """Pools ordered by :func:`risk_adjusted_score`, best first."""

        return PoolRepository(sorted(self._pools, key=risk_adjusted_score, reverse=True))

    def by_apy(self) -> "PoolRepository":
        return PoolRepository(sorted(self._pools, key=lambda p: p.apy, reverse=True))

    def head(self, n: int) -> list[Pool]:
        return self._pools[: max(n, 0)]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([pool.to_dict() for pool in self._pools])

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[Pool]:
        return iter(self._pools)


class HistoryRepository:
    """Time-ordered :class:`HistoricalDataPoint` samples of one pool."""

    def __init__(self, points: Iterable[HistoricalDataPoint] | None = None) -> None:
        self._points: list[HistoricalDataPoint] = sorted(
            points or [], key=lambda p: p.timestamp
        )

    def extend(self, points: Iterable[HistoricalDataPoint]) -> None:
        self._points.extend(points)
        self._points.sort(key=lambda p: p.timestamp)

    def to_frame(self) -> pd.DataFrame:
        if not self._points:
            return pd.DataFrame()
        df = pd.DataFrame([point.to_dict() for point in self._points])
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
        return df.set_index("timestamp").sort_index()

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[HistoricalDataPoint]:
        return iter(self._points)


__all__ = ["HistoryRepository", "PoolRepository", "risk_adjusted_score"]
