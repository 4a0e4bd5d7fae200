from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from yield_risk_lab.core import Pool
from yield_risk_lab.normalize import (
    accept_protocol_category,
    filter_pools,
    normalize_history,
    normalize_pools,
    normalize_protocols,
    rank_pools,
)

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _fixture(name: str) -> object:
    return json.loads((FIXTURES / name).read_text())


def test_protocol_categories() -> None:
    assert accept_protocol_category("Lending")
    assert accept_protocol_category("Yield Aggregator")
    assert accept_protocol_category("CDP Lending")
    assert not accept_protocol_category("RWA Lending")
    assert not accept_protocol_category("CEX")
    assert not accept_protocol_category("Derivatives")


def test_normalize_protocols_drops_excluded_and_empty() -> None:
    protocols = normalize_protocols(_fixture("defillama_protocols.json"))
    assert [p.name for p in protocols] == ["Aave V3", "Lido", "Compound V3", "Curve DEX", "Tiny Yield"]
    aave = protocols[0]
    assert aave.chains == ("Ethereum", "Arbitrum", "Base", "Polygon", "Optimism")
    assert aave.has_audits
    assert not protocols[-1].has_audits


def test_ranked_path_filters_pools() -> None:
    pools = normalize_pools(_fixture("defillama_pools.json")["data"])
    ids = {p.pool_id for p in pools}
    assert ids == {"aave-usdc", "compound-usdc", "lido-steth", "curve-3pool", "gmx-eth-usdc", "reward-only"}
    for pool in pools:
        assert pool.tvl_usd > 1_000_000
        assert 0 < pool.apy < 200


def test_directory_path_allows_higher_apy_ceiling() -> None:
    pools = normalize_pools(_fixture("defillama_pools.json")["data"], max_apy=500)
    ids = {p.pool_id for p in pools}
    assert "moon-pool" in ids
    assert "absurd" not in ids


def test_missing_apy_is_base_plus_reward() -> None:
    pools = normalize_pools(_fixture("defillama_pools.json")["data"])
    reward_only = next(p for p in pools if p.pool_id == "reward-only")
    assert reward_only.apy == pytest.approx(4.5)
    compound = next(p for p in pools if p.pool_id == "compound-usdc")
    assert compound.reward_tokens == ("0xc00e94cb662c3520282e6f5717214004a7f26888",)


def test_filter_is_idempotent() -> None:
    pools = normalize_pools(_fixture("defillama_pools.json")["data"], min_tvl=0, max_apy=1_000)
    once = filter_pools(pools)
    assert filter_pools(once) == once


def test_filter_rejects_test_and_deprecated_names() -> None:
    pools = [
        Pool("1", "Ethereum", "test-protocol", "USDC", 5e6, 5.0),
        Pool("2", "Ethereum", "yearn", "yvUSDC-DEPRECATED", 5e6, 5.0),
        Pool("3", "Ethereum", "", "USDC", 5e6, 5.0),
        Pool("4", "Ethereum", "yearn", "USDC", 5e6, 5.0),
    ]
    assert [p.pool_id for p in filter_pools(pools)] == ["4"]


def test_aave_outranks_compound() -> None:
    pools = [
        Pool("aave", "Ethereum", "Aave", "USDC", 1e8, 10.0),
        Pool("compound", "Ethereum", "Compound", "USDC", 5e7, 8.0),
    ]
    ranked = rank_pools(filter_pools(pools, min_tvl=1e6))
    assert [p.pool_id for p in ranked] == ["aave", "compound"]


def test_history_window_and_order() -> None:
    now = pd.Timestamp("2024-03-01", tz="UTC")
    points = normalize_history(_fixture("defillama_chart.json")["data"], days=30, now=now)
    assert [p.timestamp.day for p in points] == [10, 12, 14]
    assert points[0].apy_base_7d == pytest.approx(4.0)
    assert points[-1].apy == 0.0
    assert points[-1].apy_reward == pytest.approx(0.2)
