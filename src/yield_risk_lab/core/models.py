"""Immutable data models used throughout YieldRiskLab."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

import pandas as pd

T = TypeVar("T")


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class RiskTier(str, Enum):
    """Risk tolerance of an allocation request."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value: "RiskTier | str") -> "RiskTier":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"unknown risk tier: {value!r}") from exc


@dataclass(frozen=True)
class DefiProtocol:
    """Snapshot of a protocol as listed by the protocol directory."""

    name: str
    tvl: float
    category: str
    chains: tuple[str, ...] = ()
    change_1d: float | None = None
    change_7d: float | None = None
    audits: str | None = None
    url: str = ""
    description: str = ""

    @property
    def has_audits(self) -> bool:
        return bool(self.audits) and self.audits != "0"

    def matches(self, name: str) -> bool:
        """Case-insensitive identity check used for lookups by name."""

        return self.name.lower() == name.strip().lower()


@dataclass(frozen=True)
class Pool:
    """Snapshot description of a yield-bearing pool.

    APY fields are percentages as reported by the upstream directories,
    e.g. ``8.2`` for 8.2%.
    """

    pool_id: str
    chain: str
    project: str
    symbol: str
    tvl_usd: float
    apy: float
    apy_base: float = 0.0
    apy_reward: float = 0.0
    reward_tokens: tuple[str, ...] = ()
    il_7d: float | None = None
    apy_base_7d: float | None = None
    volume_usd_1d: float | None = None
    volume_usd_7d: float | None = None
    # lending market extras, only populated by the on-chain reader
    ltv: float | None = None
    liquidation_threshold: float | None = None
    utilization_rate: float | None = None
    can_be_collateral: bool | None = None
    is_active: bool | None = None
    source: str = "custom"
    timestamp: float = 0.0  # unix epoch; 0 means unknown

    @property
    def tokens(self) -> tuple[str, ...]:
        """Upper-cased component symbols of the pool, e.g. ``("USDC", "DAI")``."""

        return tuple(part for part in self.symbol.upper().replace("/", "-").split("-") if part)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the pool to a dictionary suitable for DataFrame creation."""

        data = asdict(self)
        data["reward_tokens"] = ",".join(self.reward_tokens)
        data["timestamp_iso"] = (
            datetime.fromtimestamp(self.timestamp or 0, tz=UTC).isoformat()
            if self.timestamp
            else ""
        )
        return data


@dataclass(frozen=True)
class RiskMetrics:
    protocol_risk: float
    smart_contract_risk: float
    liquidity_risk: float
    market_risk: float
    composability_risk: float
    overall_risk: float
    risk_factors: tuple[str, ...] = ()

    def scores(self) -> dict[str, float]:
        return {
            "protocol_risk": self.protocol_risk,
            "smart_contract_risk": self.smart_contract_risk,
            "liquidity_risk": self.liquidity_risk,
            "market_risk": self.market_risk,
            "composability_risk": self.composability_risk,
            "overall_risk": self.overall_risk,
        }


@dataclass(frozen=True)
class HistoricalDataPoint:
    """One sample of a pool's chart history."""

    timestamp: pd.Timestamp
    tvl_usd: float
    apy: float
    apy_base: float = 0.0
    apy_reward: float | None = None
    il_7d: float | None = None
    apy_base_7d: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "tvl_usd": self.tvl_usd,
            "apy": self.apy,
            "apy_base": self.apy_base,
            "apy_reward": self.apy_reward,
            "il_7d": self.il_7d,
            "apy_base_7d": self.apy_base_7d,
        }


@dataclass(frozen=True)
class TrendAnalysis:
    average_apy: float
    current_apy: float
    apy_trend: Trend
    tvl_trend: Trend
    volatility: float
    risk_score: float
    recommendation: str


@dataclass(frozen=True)
class TokenPrice:
    id: str
    symbol: str
    name: str
    current_price: float
    market_cap: float = 0.0
    market_cap_rank: int | None = None
    price_change_24h: float | None = None
    price_change_7d: float | None = None
    total_volume: float = 0.0


@dataclass(frozen=True)
class ProtocolAllocation:
    """A single leg of an allocation plan."""

    protocol: str
    percentage: float
    expected_apy: float
    risk_score: float
    tvl: float
    chain: str
    token: str
    category: str = ""
    amount: float | None = None


@dataclass(frozen=True)
class AllocationPlan:
    """Weighted multi-protocol allocation produced for one request.

    ``confidence`` is an advisory heuristic in [0, 95]; it is not a
    statistically calibrated probability.
    """

    risk_tier: RiskTier
    allocations: tuple[ProtocolAllocation, ...]
    expected_apy: float
    confidence: float
    reasoning: str
    used_fallback: bool = False

    @property
    def total_percentage(self) -> float:
        return sum(a.percentage for a in self.allocations)


@dataclass(frozen=True)
class PortfolioPosition:
    protocol: str
    asset: str
    amount: float
    apy: float = 0.0


@dataclass(frozen=True)
class PortfolioAnalysis:
    analysis: str
    recommendations: tuple[str, ...]
    risk_score: float
    total_value: float
    expected_yield: float
    risk_metrics: Mapping[str, RiskMetrics] = field(default_factory=dict)


@dataclass(frozen=True)
class MarketSnapshot:
    top_yields: tuple[Pool, ...]
    stable_yields: tuple[Pool, ...]
    protocols: tuple[DefiProtocol, ...]
    average_yield: float
    total_tvl: float
    timestamp: str


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    timestamp: float


__all__ = [
    "AllocationPlan",
    "CacheEntry",
    "DefiProtocol",
    "HistoricalDataPoint",
    "MarketSnapshot",
    "Pool",
    "PortfolioAnalysis",
    "PortfolioPosition",
    "ProtocolAllocation",
    "RiskMetrics",
    "RiskTier",
    "TokenPrice",
    "Trend",
    "TrendAnalysis",
]
