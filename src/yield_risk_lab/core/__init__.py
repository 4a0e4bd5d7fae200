"""Core data structures for :mod:`yield_risk_lab`.

This subpackage groups the fundamental models and repositories used across
the project so they can be shared without importing the entire public
interface exposed in :mod:`yield_risk_lab.__init__`.
"""

from __future__ import annotations

from .constants import BLUECHIP_TOKENS, STABLE_TOKENS
from .models import (
    AllocationPlan,
    CacheEntry,
    DefiProtocol,
    HistoricalDataPoint,
    MarketSnapshot,
    Pool,
    PortfolioAnalysis,
    PortfolioPosition,
    ProtocolAllocation,
    RiskMetrics,
    RiskTier,
    TokenPrice,
    Trend,
    TrendAnalysis,
)
from .repositories import HistoryRepository, PoolRepository, risk_adjusted_score

__all__ = [
    "AllocationPlan",
    "BLUECHIP_TOKENS",
    "CacheEntry",
    "DefiProtocol",
    "HistoricalDataPoint",
    "HistoryRepository",
    "MarketSnapshot",
    "Pool",
    "PoolRepository",
    "PortfolioAnalysis",
    "PortfolioPosition",
    "ProtocolAllocation",
    "RiskMetrics",
    "RiskTier",
    "STABLE_TOKENS",
    "TokenPrice",
    "Trend",
    "TrendAnalysis",
    "risk_adjusted_score",
]
