"""Literal fallback table used when every live strategy has failed."""

from __future__ import annotations

from ..core import Pool

# Representative long-lived markets; figures are indicative only.
DEFAULT_POOLS: tuple[Pool, ...] = (
    Pool("aave-v3-usdc", "Ethereum", "aave-v3", "USDC", 2_800_000_000, 4.2, 4.2, source="static"),
    Pool("compound-v3-usdc", "Ethereum", "compound-v3", "USDC", 1_200_000_000, 3.9, 3.9, source="static"),
    Pool("aave-v3-usdt", "Ethereum", "aave-v3", "USDT", 1_500_000_000, 4.0, 4.0, source="static"),
    Pool("lido-steth", "Ethereum", "lido", "STETH", 32_000_000_000, 3.8, 3.8, source="static"),
    Pool("rocketpool-reth", "Ethereum", "rocket-pool", "RETH", 8_500_000_000, 3.6, 3.6, source="static"),
    Pool("aave-v3-wbtc", "Ethereum", "aave-v3", "WBTC", 1_000_000_000, 0.5, 0.5, source="static"),
    Pool(
        "curve-3pool",
        "Ethereum",
        "curve-dex",
        "DAI-USDC-USDT",
        1_500_000_000,
        6.4,
        2.1,
        4.3,
        ("CRV",),
        source="static",
    ),
    Pool(
        "gmx-v2-eth-usdc",
        "Arbitrum",
        "gmx-v2-perps",
        "ETH-USDC",
        65_000_000,
        16.8,
        12.1,
        4.7,
        ("GMX", "ARB"),
        source="static",
    ),
    Pool(
        "pendle-wsteth",
        "Ethereum",
        "pendle",
        "PT-WSTETH",
        120_000_000,
        9.5,
        3.8,
        5.7,
        ("PENDLE",),
        source="static",
    ),
)


class StaticPoolSource:
    """Always-succeeding source returning :data:`DEFAULT_POOLS`."""

    name = "static"

    def __init__(self, pools: tuple[Pool, ...] = DEFAULT_POOLS) -> None:
        self.pools = pools

    def fetch(self) -> list[Pool]:
        return list(self.pools)


__all__ = ["DEFAULT_POOLS", "StaticPoolSource"]
