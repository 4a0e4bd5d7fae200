"""
YieldRiskLab: read-path analytics over DeFi yield and lending markets.

Design goals:
- Thin upstream adapters (DefiLlama protocols and pools, CoinGecko prices,
  Aave v3 on-chain reserves, CSV snapshot, static fallback table)
- Immutable data model (Pool, DefiProtocol, ...) + light repositories
- Shared TTL cache with stale-on-error reads
- Heuristic protocol risk scores, pool trend analysis, risk-tiered allocation
  plans and portfolio summaries
- One service object (:class:`YieldDataService`) built from configuration
"""

from __future__ import annotations

import logging

from . import analytics, risk_scoring
from .cache import TTLCache, cache_key
from .config import load_config
from .core import (
    AllocationPlan,
    DefiProtocol,
    HistoricalDataPoint,
    HistoryRepository,
    MarketSnapshot,
    Pool,
    PoolRepository,
    PortfolioAnalysis,
    PortfolioPosition,
    ProtocolAllocation,
    RiskMetrics,
    RiskTier,
    TokenPrice,
    Trend,
    TrendAnalysis,
)
from .errors import (
    ConfigurationError,
    FetchError,
    NoDataError,
    NotFoundError,
    StaleDataWarning,
    YieldRiskLabError,
)
from .pipeline import FetchResult, fan_out, first_success
from .service import YieldDataService

logger = logging.getLogger(__name__)

__all__ = [
    "AllocationPlan",
    "ConfigurationError",
    "DefiProtocol",
    "FetchError",
    "FetchResult",
    "HistoricalDataPoint",
    "HistoryRepository",
    "MarketSnapshot",
    "NoDataError",
    "NotFoundError",
    "Pool",
    "PoolRepository",
    "PortfolioAnalysis",
    "PortfolioPosition",
    "ProtocolAllocation",
    "RiskMetrics",
    "RiskTier",
    "StaleDataWarning",
    "TTLCache",
    "TokenPrice",
    "Trend",
    "TrendAnalysis",
    "YieldDataService",
    "YieldRiskLabError",
    "analytics",
    "cache_key",
    "fan_out",
    "first_success",
    "load_config",
    "risk_scoring",
]
