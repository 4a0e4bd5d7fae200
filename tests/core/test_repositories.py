from __future__ import annotations

import pandas as pd
import pytest

from yield_risk_lab.core import HistoricalDataPoint, HistoryRepository, Pool, PoolRepository, risk_adjusted_score


def _pools() -> list[Pool]:
    return [
        Pool("a", "Ethereum", "aave-v3", "USDC", 4e8, 5.0),
        Pool("b", "Ethereum", "compound-v3", "USDC", 5e7, 8.0),
        Pool("c", "Arbitrum", "gmx-v2-perps", "ETH-USDC", 7e7, 16.4),
        Pool("d", "Base", "aave-v3", "WETH", 2e8, 1.9),
    ]


def test_risk_adjusted_score() -> None:
    assert risk_adjusted_score(_pools()[0]) == pytest.approx(100.0)
    assert risk_adjusted_score(_pools()[1]) == pytest.approx(56.5685, rel=1e-4)
    assert risk_adjusted_score(Pool("z", "Ethereum", "x", "USDC", 0.0, 50.0)) == 0.0


def test_ranked_orders_by_score() -> None:
    ranked = [p.pool_id for p in PoolRepository(_pools()).ranked()]
    assert ranked == ["c", "a", "b", "d"]


def test_filter_criteria() -> None:
    repo = PoolRepository(_pools())
    assert len(repo.filter(min_tvl=1e8)) == 2
    assert [p.pool_id for p in repo.filter(chains=["arbitrum"])] == ["c"]
    assert [p.pool_id for p in repo.filter(projects=["aave"])] == ["a", "d"]
    assert [p.pool_id for p in repo.filter(symbols=["eth"])] == ["c"]
    assert [p.pool_id for p in repo.filter(min_apy=2.0, max_apy=16.4)] == ["a", "b"]


def test_pool_tokens_split_symbols() -> None:
    assert Pool("x", "Ethereum", "curve", "dai-usdc/usdt", 1.0, 1.0).tokens == ("DAI", "USDC", "USDT")


def test_to_dataframe_columns() -> None:
    df = PoolRepository(_pools()).to_dataframe()
    assert list(df["pool_id"]) == ["a", "b", "c", "d"]
    assert {"tvl_usd", "apy", "reward_tokens", "timestamp_iso"} <= set(df.columns)


def test_history_repository_sorts_and_indexes() -> None:
    t0 = pd.Timestamp("2024-02-01", tz="UTC")
    points = [
        HistoricalDataPoint(t0 + pd.Timedelta(days=2), 3e6, 4.2),
        HistoricalDataPoint(t0, 1e6, 4.0),
    ]
    repo = HistoryRepository(points)
    repo.extend([HistoricalDataPoint(t0 + pd.Timedelta(days=1), 2e6, 4.1)])
    frame = repo.to_frame()
    assert list(frame["apy"]) == [4.0, 4.1, 4.2]
    assert frame.index.is_monotonic_increasing
    assert str(frame.index.tz) == "UTC"
    assert HistoryRepository().to_frame().empty
