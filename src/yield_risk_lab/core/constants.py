"""Core constants shared across YieldRiskLab modules.

Thresholds and weights used by the scoring, filtering and allocation layers
are domain policy rather than derived values.  They are collected here as
named constants so they can be tuned and tested independently of the
algorithms that consume them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# Common stablecoins recognised when classifying pool symbols.
STABLE_TOKENS = frozenset(
    {
        "USDC",
        "USDT",
        "DAI",
        "FRAX",
        "LUSD",
        "GUSD",
        "TUSD",
        "USDP",
        "USDD",
        "USDS",
        "USDE",
        "SUSDE",
        "PYUSD",
        "USDBC",
        "MAI",
        "SUSD",
        "EURS",
        "EURC",
        "EUROE",
        "CRVUSD",
        "GHO",
        "DOLA",
        "USDC.E",
        "USDT.E",
    }
)

# ETH/BTC family assets treated as "blue-chip" by the allocation engine.
BLUECHIP_TOKENS = frozenset(
    {
        "ETH",
        "WETH",
        "STETH",
        "WSTETH",
        "RETH",
        "CBETH",
        "WEETH",
        "BTC",
        "WBTC",
        "CBBTC",
        "TBTC",
    }
)

# Symbols that resolve to the same underlying when searching per token.
TOKEN_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "ETH": ("ETH", "WETH"),
        "WETH": ("WETH", "ETH"),
        "BTC": ("BTC", "WBTC"),
        "WBTC": ("WBTC", "BTC"),
        "USDC": ("USDC", "USDC.E"),
        "USDT": ("USDT", "USDT.E"),
    }
)

# -----------------
# Normalizer / filter
# -----------------

EXCLUDED_PROTOCOL_CATEGORIES = frozenset({"CEX", "Bridge", "Chain", "RWA Lending"})
ALLOWED_PROTOCOL_CATEGORIES = frozenset(
    {"Lending", "DEX", "Yield Farming", "Yield", "Liquid Staking", "Staking Pool"}
)
PROTOCOL_CATEGORY_KEYWORDS = ("Yield", "Lending")

DEFAULT_MIN_TVL_USD = 1_000_000.0
RANKED_MAX_APY = 200.0  # percent, ranked opportunity path
DIRECTORY_MAX_APY = 500.0  # percent, unfiltered directory path
REJECTED_NAME_MARKERS = ("test", "deprecated")
RANKING_TVL_UNIT = 1_000_000.0

# -----------------
# On-chain reserves
# -----------------

RAY = 10**27
SECONDS_PER_YEAR = 31_536_000

# -----------------
# Risk scoring
# -----------------


@dataclass(frozen=True)
class RiskPolicy:
    """Tunable thresholds of the protocol risk model."""

    base_score: float = 5.0
    min_score: float = 1.0
    max_score: float = 10.0
    very_high_tvl: float = 10_000_000_000.0
    high_tvl: float = 1_000_000_000.0
    low_tvl: float = 100_000_000.0
    max_chains: int = 3
    severe_tvl_decline_pct: float = -20.0
    tvl_decline_pct: float = -10.0
    high_risk_categories: frozenset[str] = frozenset(
        {"Derivatives", "Options", "Synthetics", "Leveraged Farming"}
    )
    low_risk_categories: frozenset[str] = frozenset({"Lending", "Liquid Staking"})
    weights: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                "protocol_risk": 0.25,
                "smart_contract_risk": 0.25,
                "liquidity_risk": 0.20,
                "market_risk": 0.20,
                "composability_risk": 0.10,
            }
        )
    )


DEFAULT_RISK_POLICY = RiskPolicy()

# -----------------
# Trend analysis
# -----------------

TREND_WINDOW = 7
TREND_UP_RATIO = 1.05
TREND_DOWN_RATIO = 0.95
HIGH_VOLATILITY_PCT = 50.0
ELEVATED_VOLATILITY_PCT = 25.0
APY_SPIKE_MULTIPLE = 2.0
LOW_POOL_TVL_USD = 1_000_000.0

# -----------------
# Allocation
# -----------------

# Category weights (percent) per risk tier: stable / bluechip / risk.
TIER_CATEGORY_WEIGHTS: Mapping[str, Mapping[str, float]] = MappingProxyType(
    {
        "conservative": MappingProxyType({"stable": 70.0, "bluechip": 25.0, "risk": 5.0}),
        "moderate": MappingProxyType({"stable": 50.0, "bluechip": 30.0, "risk": 20.0}),
        "aggressive": MappingProxyType({"stable": 25.0, "bluechip": 25.0, "risk": 50.0}),
    }
)

# Number of pools selected per category for each tier.
TIER_CATEGORY_LEGS: Mapping[str, Mapping[str, int]] = MappingProxyType(
    {
        "conservative": MappingProxyType({"stable": 2, "bluechip": 2, "risk": 1}),
        "moderate": MappingProxyType({"stable": 2, "bluechip": 2, "risk": 2}),
        "aggressive": MappingProxyType({"stable": 1, "bluechip": 2, "risk": 2}),
    }
)

# How a category weight is split across its selected pools, best first.
SPLIT_PATTERNS: Mapping[int, tuple[float, ...]] = MappingProxyType(
    {1: (1.0,), 2: (0.7, 0.3), 3: (0.5, 0.3, 0.2)}
)

CATEGORY_DEFAULT_RISK: Mapping[str, float] = MappingProxyType(
    {"stable": 2.0, "bluechip": 4.0, "risk": 6.0}
)

# Token-specific split (first pool, second pool) and leg risk score per tier.
TOKEN_TIER_SPLITS: Mapping[str, tuple[float, ...]] = MappingProxyType(
    {"conservative": (70.0, 30.0), "moderate": (60.0, 40.0), "aggressive": (100.0,)}
)
TOKEN_TIER_RISK: Mapping[str, float] = MappingProxyType(
    {"conservative": 2.0, "moderate": 3.0, "aggressive": 5.0}
)

CONFIDENCE_BASE = 85.0
CONFIDENCE_FALLBACK_BASE = 70.0
CONFIDENCE_MAX = 95.0
CONFIDENCE_STEP = 10.0
DIVERSIFIED_PROTOCOLS = 3

# -----------------
# Portfolio analysis
# -----------------

HIGH_PORTFOLIO_RISK = 7.0
LOW_PORTFOLIO_RISK = 4.0
CONCENTRATION_SHARE = 0.5
LOW_YIELD_PCT = 5.0
PROTOCOL_ALERT_RISK = 8.0
MARKET_YIELD_SHARE = 0.7
MAX_RECOMMENDATIONS = 8

__all__ = [
    "ALLOWED_PROTOCOL_CATEGORIES",
    "APY_SPIKE_MULTIPLE",
    "BLUECHIP_TOKENS",
    "CATEGORY_DEFAULT_RISK",
    "CONCENTRATION_SHARE",
    "CONFIDENCE_BASE",
    "CONFIDENCE_FALLBACK_BASE",
    "CONFIDENCE_MAX",
    "CONFIDENCE_STEP",
    "DEFAULT_MIN_TVL_USD",
    "DEFAULT_RISK_POLICY",
    "DIRECTORY_MAX_APY",
    "DIVERSIFIED_PROTOCOLS",
    "ELEVATED_VOLATILITY_PCT",
    "EXCLUDED_PROTOCOL_CATEGORIES",
    "HIGH_PORTFOLIO_RISK",
    "HIGH_VOLATILITY_PCT",
    "LOW_POOL_TVL_USD",
    "LOW_PORTFOLIO_RISK",
    "LOW_YIELD_PCT",
    "MARKET_YIELD_SHARE",
    "MAX_RECOMMENDATIONS",
    "PROTOCOL_ALERT_RISK",
    "PROTOCOL_CATEGORY_KEYWORDS",
    "RANKED_MAX_APY",
    "RANKING_TVL_UNIT",
    "RAY",
    "REJECTED_NAME_MARKERS",
    "RiskPolicy",
    "SECONDS_PER_YEAR",
    "SPLIT_PATTERNS",
    "STABLE_TOKENS",
    "TIER_CATEGORY_LEGS",
    "TIER_CATEGORY_WEIGHTS",
    "TOKEN_ALIASES",
    "TOKEN_TIER_RISK",
    "TOKEN_TIER_SPLITS",
    "TREND_DOWN_RATIO",
    "TREND_UP_RATIO",
    "TREND_WINDOW",
]
