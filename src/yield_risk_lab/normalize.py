"""Convert raw upstream payloads into canonical records and drop bad rows."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import pandas as pd

from .core import DefiProtocol, HistoricalDataPoint, Pool, PoolRepository, TokenPrice
from .core.constants import (
    ALLOWED_PROTOCOL_CATEGORIES,
    DEFAULT_MIN_TVL_USD,
    EXCLUDED_PROTOCOL_CATEGORIES,
    PROTOCOL_CATEGORY_KEYWORDS,
    RANKED_MAX_APY,
    RAY,
    REJECTED_NAME_MARKERS,
    SECONDS_PER_YEAR,
)

logger = logging.getLogger(__name__)


def _num(value: Any, default: float | None = 0.0) -> float | None:
    """Best-effort float conversion; ``default`` for missing or non-finite values."""

    if value is None:
        return default
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    return out if math.isfinite(out) else default


# -----------------
# Protocols
# -----------------


def accept_protocol_category(category: str) -> bool:
    if category in EXCLUDED_PROTOCOL_CATEGORIES:
        return False
    return category in ALLOWED_PROTOCOL_CATEGORIES or any(
        keyword in category for keyword in PROTOCOL_CATEGORY_KEYWORDS
    )


def normalize_protocols(raw: Iterable[Mapping[str, Any]]) -> list[DefiProtocol]:
    """Directory rows with positive TVL in a yield-relevant category."""

    protocols: list[DefiProtocol] = []
    for item in raw:
        name = str(item.get("name") or "").strip()
        tvl = _num(item.get("tvl"))
        category = str(item.get("category") or "")
        if not name or not tvl or tvl <= 0 or not accept_protocol_category(category):
            continue
        audits = item.get("audits")
        protocols.append(
            DefiProtocol(
                name=name,
                tvl=tvl,
                category=category,
                chains=tuple(str(c) for c in item.get("chains") or ()),
                change_1d=_num(item.get("change_1d"), None),
                change_7d=_num(item.get("change_7d"), None),
                audits=None if audits is None else str(audits),
                url=str(item.get("url") or ""),
                description=str(item.get("description") or ""),
            )
        )
    return protocols


# -----------------
# Pools
# -----------------


def _valid_name(value: str) -> bool:
    lowered = value.strip().lower()
    return bool(lowered) and not any(marker in lowered for marker in REJECTED_NAME_MARKERS)


def accept_pool(
    pool: Pool, *, min_tvl: float = DEFAULT_MIN_TVL_USD, max_apy: float = RANKED_MAX_APY
) -> bool:
    return (
        pool.tvl_usd > min_tvl
        and 0 < pool.apy < max_apy
        and _valid_name(pool.project)
        and _valid_name(pool.symbol)
    )


def filter_pools(
    pools: Iterable[Pool], *, min_tvl: float = DEFAULT_MIN_TVL_USD, max_apy: float = RANKED_MAX_APY
) -> list[Pool]:
    """Sanity filter; applying it twice yields the same set."""

    return [p for p in pools if accept_pool(p, min_tvl=min_tvl, max_apy=max_apy)]


def _pool_from_row(item: Mapping[str, Any], source: str, now: float) -> Pool:
    project = str(item.get("project") or "")
    symbol = str(item.get("symbol") or "")
    apy_base = _num(item.get("apyBase"))
    apy_reward = _num(item.get("apyReward"))
    apy = _num(item.get("apy"), None)
    if apy is None:
        apy = (apy_base or 0.0) + (apy_reward or 0.0)
    return Pool(
        pool_id=str(item.get("pool") or f"{project}-{symbol}"),
        chain=str(item.get("chain") or "Ethereum"),
        project=project,
        symbol=symbol,
        tvl_usd=_num(item.get("tvlUsd")) or 0.0,
        apy=apy,
        apy_base=apy_base or 0.0,
        apy_reward=apy_reward or 0.0,
        reward_tokens=tuple(str(t) for t in item.get("rewardTokens") or ()),
        il_7d=_num(item.get("il7d"), None),
        apy_base_7d=_num(item.get("apyBase7d"), None),
        volume_usd_1d=_num(item.get("volumeUsd1d"), None),
        volume_usd_7d=_num(item.get("volumeUsd7d"), None),
        source=source,
        timestamp=now,
    )


def normalize_pools(
    raw: Iterable[Mapping[str, Any]],
    *,
    min_tvl: float = DEFAULT_MIN_TVL_USD,
    max_apy: float = RANKED_MAX_APY,
    source: str = "defillama",
) -> list[Pool]:
    now = datetime.now(tz=UTC).timestamp()
    pools = [_pool_from_row(item, source, now) for item in raw]
    kept = filter_pools(pools, min_tvl=min_tvl, max_apy=max_apy)
    logger.debug("Kept %d of %d pools (min_tvl=%s, max_apy=%s)", len(kept), len(pools), min_tvl, max_apy)
    return kept


def rank_pools(pools: Iterable[Pool]) -> list[Pool]:
    """Order by risk-adjusted score ``apy * sqrt(tvl / 1M)``, best first."""

    return list(PoolRepository(pools).ranked())


# -----------------
# On-chain reserves
# -----------------


def rate_to_apy(liquidity_rate: int | float) -> float:
    """Aave RAY-denominated annual rate to a compounded APY percentage."""

    per_second = float(liquidity_rate) / RAY / SECONDS_PER_YEAR
    return ((1.0 + per_second) ** SECONDS_PER_YEAR - 1.0) * 100.0


def normalize_reserves(
    rows: Iterable[Mapping[str, Any]], prices: Mapping[str, float] | None = None
) -> list[Pool]:
    """Reserve rows from :class:`~yield_risk_lab.sources.AaveReserveSource` as pools.

    ``prices`` maps upper-case symbols to USD prices; unknown symbols are
    valued at 1.0.
    """

    prices = prices or {}
    now = datetime.now(tz=UTC).timestamp()
    pools: list[Pool] = []
    for row in rows:
        symbol = str(row.get("symbol") or "")
        if not symbol:
            continue
        decimals = int(row.get("decimals") or 18)
        supplied = int(row.get("total_atoken") or 0)
        debt = int(row.get("total_stable_debt") or 0) + int(row.get("total_variable_debt") or 0)
        price = prices.get(symbol.upper(), 1.0)
        apy = rate_to_apy(row.get("liquidity_rate") or 0)
        network = str(row.get("network") or "")
        pools.append(
            Pool(
                pool_id=f"aave-v3-{symbol}-{network}".lower(),
                chain=str(row.get("chain") or network),
                project="aave-v3",
                symbol=symbol,
                tvl_usd=supplied / 10**decimals * price,
                apy=apy,
                apy_base=apy,
                ltv=int(row.get("ltv") or 0) / 100.0,
                liquidation_threshold=int(row.get("liquidation_threshold") or 0) / 100.0,
                utilization_rate=debt / supplied if supplied else 0.0,
                can_be_collateral=bool(row.get("usage_as_collateral")),
                is_active=bool(row.get("is_active")) and not bool(row.get("is_frozen")),
                source="aave-v3",
                timestamp=now,
            )
        )
    return pools


# -----------------
# Prices
# -----------------


def normalize_prices(raw: Iterable[Mapping[str, Any]]) -> list[TokenPrice]:
    prices: list[TokenPrice] = []
    for item in raw:
        if not item.get("id") or item.get("current_price") is None:
            continue
        rank = item.get("market_cap_rank")
        prices.append(
            TokenPrice(
                id=str(item["id"]),
                symbol=str(item.get("symbol") or "").upper(),
                name=str(item.get("name") or ""),
                current_price=_num(item.get("current_price")) or 0.0,
                market_cap=_num(item.get("market_cap")) or 0.0,
                market_cap_rank=int(rank) if rank is not None else None,
                price_change_24h=_num(item.get("price_change_percentage_24h"), None),
                price_change_7d=_num(item.get("price_change_percentage_7d_in_currency"), None),
                total_volume=_num(item.get("total_volume")) or 0.0,
            )
        )
    return prices


def price_map(prices: Iterable[TokenPrice]) -> dict[str, float]:
    return {p.symbol.upper(): p.current_price for p in prices}


# -----------------
# History
# -----------------


def normalize_history(
    raw: Iterable[Mapping[str, Any]],
    *,
    days: int = 30,
    now: pd.Timestamp | None = None,
) -> list[HistoricalDataPoint]:
    """Chart rows of the last ``days`` days, oldest first."""

    now = now if now is not None else pd.Timestamp.now(tz="UTC")
    cutoff = now - pd.Timedelta(days=days)
    points: list[HistoricalDataPoint] = []
    for item in raw:
        try:
            ts = pd.to_datetime(item.get("timestamp"), utc=True)
        except (TypeError, ValueError):
            continue
        if pd.isna(ts) or ts < cutoff:
            continue
        points.append(
            HistoricalDataPoint(
                timestamp=ts,
                tvl_usd=_num(item.get("tvlUsd")) or 0.0,
                apy=_num(item.get("apy")) or 0.0,
                apy_base=_num(item.get("apyBase")) or 0.0,
                apy_reward=_num(item.get("apyReward"), None),
                il_7d=_num(item.get("il7d"), None),
                apy_base_7d=_num(item.get("apyBase7d"), None),
            )
        )
    points.sort(key=lambda p: p.timestamp)
    return points


__all__ = [
    "accept_pool",
    "accept_protocol_category",
    "filter_pools",
    "normalize_history",
    "normalize_pools",
    "normalize_prices",
    "normalize_protocols",
    "normalize_reserves",
    "price_map",
    "rank_pools",
    "rate_to_apy",
]
