"""Read-path facade combining adapters, cache, normalizer and analytics.

``YieldDataService`` is built once at process start (see
:meth:`YieldDataService.from_config`) and handed to whichever layer renders
results.  Every upstream call goes through the shared :class:`TTLCache`;
independent fetches are fanned out with :func:`pipeline.fan_out` and pool
candidates come from an ordered chain of data-source strategies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from .analytics import (
    analyze_portfolio,
    analyze_trend,
    build_allocation,
    build_token_allocation,
    classify_pool,
    impermanent_loss,
)
from .cache import DEFAULT_TTL_SECONDS, TTLCache, cache_key
from .config import load_config
from .core import (
    AllocationPlan,
    DefiProtocol,
    HistoricalDataPoint,
    MarketSnapshot,
    Pool,
    PoolRepository,
    PortfolioAnalysis,
    PortfolioPosition,
    RiskMetrics,
    RiskTier,
    TokenPrice,
    TrendAnalysis,
)
from .core.constants import (
    DEFAULT_MIN_TVL_USD,
    DEFAULT_RISK_POLICY,
    DIRECTORY_MAX_APY,
    RANKED_MAX_APY,
    TOKEN_ALIASES,
    RiskPolicy,
)
from .errors import FetchError, NoDataError, NotFoundError
from .normalize import (
    filter_pools,
    normalize_history,
    normalize_pools,
    normalize_prices,
    normalize_protocols,
    normalize_reserves,
    price_map,
    rank_pools,
)
from .pipeline import DEFAULT_MAX_WORKERS, FetchResult, fan_out, first_success
from .risk_scoring import NEUTRAL_RISK, score_protocol
from .sources import (
    AaveNetwork,
    AaveReserveSource,
    CoinGeckoPriceSource,
    CSVSource,
    PoolSource,
    ProtocolDirectorySource,
    StaticPoolSource,
    YieldPoolSource,
)
from .sources.http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

# CoinGecko ids used to value on-chain reserves; stablecoins default to $1.
RESERVE_PRICE_IDS = (
    "ethereum",
    "weth",
    "wrapped-bitcoin",
    "staked-ether",
    "wrapped-steth",
    "rocket-pool-eth",
    "coinbase-wrapped-staked-eth",
    "chainlink",
    "aave",
)

MARKET_TOP_N = 10
MARKET_STABLE_N = 5
PORTFOLIO_MARKET_N = 5
VALIDATION_TOLERANCE = 0.1


def _name_key(name: str) -> str:
    return name.strip().lower().replace("-", " ").replace("_", " ")


def _position(raw: PortfolioPosition | Mapping[str, Any]) -> PortfolioPosition:
    if isinstance(raw, PortfolioPosition):
        return raw
    return PortfolioPosition(
        protocol=str(raw.get("protocol") or ""),
        asset=str(raw.get("asset") or ""),
        amount=float(raw.get("amount") or 0.0),
        apy=float(raw.get("apy") or 0.0),
    )


def _market_key(pool: Pool) -> tuple[str, str, str]:
    return (_name_key(pool.project), pool.symbol.upper(), pool.chain.lower())


def _with_lending_fields(pool: Pool, reserve: Pool) -> Pool:
    return replace(
        pool,
        ltv=reserve.ltv,
        liquidation_threshold=reserve.liquidation_threshold,
        utilization_rate=reserve.utilization_rate,
        can_be_collateral=reserve.can_be_collateral,
        is_active=reserve.is_active,
    )


class YieldDataService:
    """Typed read operations over the yield and lending market sources."""

    def __init__(
        self,
        *,
        protocols: ProtocolDirectorySource | None = None,
        yields: YieldPoolSource | None = None,
        prices: CoinGeckoPriceSource | None = None,
        reserves: AaveReserveSource | None = None,
        snapshot: PoolSource | None = None,
        static: PoolSource | None = None,
        cache: TTLCache | None = None,
        min_tvl: float = DEFAULT_MIN_TVL_USD,
        max_apy: float = RANKED_MAX_APY,
        max_workers: int = DEFAULT_MAX_WORKERS,
        policy: RiskPolicy = DEFAULT_RISK_POLICY,
    ) -> None:
        self.protocols = protocols if protocols is not None else ProtocolDirectorySource()
        self.yields = yields if yields is not None else YieldPoolSource()
        self.prices = prices if prices is not None else CoinGeckoPriceSource()
        self.reserves = reserves if reserves is not None else AaveReserveSource()
        self.snapshot = snapshot
        self.static = static if static is not None else StaticPoolSource()
        self.cache = cache if cache is not None else TTLCache()
        self.min_tvl = float(min_tvl)
        self.max_apy = float(max_apy)
        self.max_workers = int(max_workers)
        self.policy = policy

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any] | None = None) -> "YieldDataService":
        """Build a service from a :func:`~yield_risk_lab.config.load_config` dictionary."""

        cfg = cfg if cfg is not None else load_config()
        http = cfg.get("http", {})
        timeout = float(http.get("timeout", DEFAULT_TIMEOUT))
        networks = {
            name: AaveNetwork.from_mapping(name, raw)
            for name, raw in cfg.get("aave", {}).get("networks", {}).items()
        }
        snapshot_csv = cfg.get("snapshot_csv")
        filters = cfg.get("filters", {})
        return cls(
            protocols=ProtocolDirectorySource(http.get("protocols_url"), timeout=timeout),
            yields=YieldPoolSource(http.get("yields_url"), timeout=timeout),
            prices=CoinGeckoPriceSource(
                http.get("coingecko_url"),
                api_key=cfg.get("coingecko", {}).get("api_key"),
                timeout=timeout,
            ),
            reserves=AaveReserveSource(networks, timeout=timeout),
            snapshot=CSVSource(str(snapshot_csv)) if snapshot_csv else None,
            cache=TTLCache(float(cfg.get("cache", {}).get("ttl_seconds", DEFAULT_TTL_SECONDS))),
            min_tvl=float(filters.get("min_tvl", DEFAULT_MIN_TVL_USD)),
            max_apy=float(filters.get("max_apy", RANKED_MAX_APY)),
            max_workers=int(cfg.get("pipeline", {}).get("max_workers", DEFAULT_MAX_WORKERS)),
        )

    # -----------------
    # Directory data
    # -----------------

    def get_protocols(self) -> list[DefiProtocol]:
        return self.cache.get_or_fetch(
            "protocols", lambda: normalize_protocols(self.protocols.fetch())
        )

    def get_protocol_by_name(self, name: str) -> DefiProtocol:
        """Exact (case-insensitive) match first, then the first partial match."""

        key = _name_key(name)
        protocols = self.get_protocols()
        for protocol in protocols:
            if _name_key(protocol.name) == key:
                return protocol
        for protocol in protocols:
            if key and key in _name_key(protocol.name):
                return protocol
        raise NotFoundError("protocol", name)

    def get_yield_pools(self) -> list[Pool]:
        """Sane directory pools, highest APY first.

        No TVL floor is applied here; each operation applies its own.
        """

        def fetch() -> list[Pool]:
            pools = normalize_pools(self.yields.fetch(), min_tvl=0.0, max_apy=DIRECTORY_MAX_APY)
            return list(PoolRepository(pools).by_apy())

        return self.cache.get_or_fetch("yield-pools", fetch)

    def get_token_prices(self, ids: Sequence[str]) -> list[TokenPrice]:
        ids = sorted(set(ids))
        return self.cache.get_or_fetch(
            cache_key("prices", ids), lambda: normalize_prices(self.prices.fetch(ids))
        )

    def get_chain_tvl(self, chain: str) -> float:
        return self.cache.get_or_fetch(
            cache_key("chain-tvl", chain), lambda: self.protocols.fetch_chain_tvl(chain)
        )

    def get_reserves(self, network: str) -> list[Pool]:
        """Aave v3 reserves of ``network`` as pools, valued with the price feed."""

        def fetch() -> list[Pool]:
            rows = self.reserves.fetch(network)
            return normalize_reserves(rows, self._reserve_prices())

        return self.cache.get_or_fetch(cache_key("aave", network), fetch)

    def _reserve_prices(self) -> dict[str, float]:
        try:
            return price_map(self.get_token_prices(RESERVE_PRICE_IDS))
        except FetchError as exc:
            logger.warning("Price feed unavailable, valuing reserves at $1: %s", exc)
            return {}

    # -----------------
    # Candidate strategies
    # -----------------

    def _live_market(self) -> list[Pool]:
        branches: dict[str, Callable[[], list[Pool]]] = {"yield-pools": self.get_yield_pools}
        for network in self.reserves.networks:
            branches[f"aave-{network}"] = lambda network=network: self.get_reserves(network)
        results = fan_out(branches, max_workers=self.max_workers)
        ok = [r for r in results.values() if r.ok]
        if not ok:
            raise next(iter(results.values())).error  # type: ignore[misc]
        # directory entries win (their ids resolve in the chart endpoint);
        # an on-chain twin only contributes its lending fields
        onchain = self.reserves.name
        merged: dict[str, Pool] = {}
        markets: dict[tuple[str, str, str], str] = {}
        for result in ok:
            for pool in result.data or ():
                twin = markets.get(_market_key(pool)) if pool.source == onchain else None
                if twin is not None:
                    if merged[twin].utilization_rate is None:
                        merged[twin] = _with_lending_fields(merged[twin], pool)
                    continue
                merged.setdefault(pool.pool_id, pool)
                if pool.source != onchain:
                    markets.setdefault(_market_key(pool), pool.pool_id)
        logger.info(
            "Live market: %d pools from %s", len(merged), ", ".join(r.source for r in ok)
        )
        return list(merged.values())

    def strategies(self) -> list[tuple[str, Callable[[], list[Pool]]]]:
        """Ordered data-source strategies for pool candidates."""

        chain: list[tuple[str, Callable[[], list[Pool]]]] = [("live-market", self._live_market)]
        if self.snapshot is not None:
            chain.append((self.snapshot.name, self.snapshot.fetch))
        chain.append((self.static.name, self.static.fetch))
        return chain

    def get_candidate_pools(self) -> FetchResult[list[Pool]]:
        return first_success(self.strategies())

    def _candidates(self) -> list[Pool]:
        return self.get_candidate_pools().unwrap()

    # -----------------
    # Ranked operations
    # -----------------

    def get_top_yield_opportunities(
        self, limit: int = 10, min_tvl: float = DEFAULT_MIN_TVL_USD
    ) -> list[Pool]:
        valid = filter_pools(self._candidates(), min_tvl=min_tvl, max_apy=self.max_apy)
        return PoolRepository(valid).ranked().head(limit)

    def get_stablecoin_yields(self) -> list[Pool]:
        valid = filter_pools(self._candidates(), min_tvl=self.min_tvl, max_apy=self.max_apy)
        stable = [p for p in valid if classify_pool(p) == "stable"]
        return list(PoolRepository(stable).by_apy())

    def get_token_yield_opportunities(self, symbol: str) -> list[Pool]:
        key = symbol.strip().upper()
        aliases = set(TOKEN_ALIASES.get(key, (key,)))
        matching = [
            p
            for p in self._candidates()
            if p.apy > 0 and p.tvl_usd > self.min_tvl and aliases.intersection(p.tokens)
        ]
        logger.info("Found %d yield opportunities for %s", len(matching), symbol)
        return list(PoolRepository(matching).by_apy())

    def get_pools_by_protocol(self, name: str) -> list[Pool]:
        key = _name_key(name)
        return rank_pools(
            p
            for p in self._candidates()
            if key and key in _name_key(p.project) and p.tvl_usd > self.min_tvl
        )

    # -----------------
    # Risk and trends
    # -----------------

    def calculate_protocol_risk(self, name: str) -> RiskMetrics:
        """Risk metrics for ``name``; :data:`NEUTRAL_RISK` when it cannot be scored."""

        try:
            protocol = self.get_protocol_by_name(name)
        except (FetchError, NotFoundError) as exc:
            logger.warning("Risk for %s unavailable: %s", name, exc)
            return NEUTRAL_RISK
        return score_protocol(protocol, self.policy)

    def _protocol_risk(self, projects: Iterable[str]) -> dict[str, float]:
        try:
            self.get_protocols()
        except FetchError as exc:
            logger.warning("Protocol directory unavailable, using category risk: %s", exc)
            return {}
        scores: dict[str, float] = {}
        for project in set(projects):
            try:
                scores[project] = score_protocol(
                    self.get_protocol_by_name(project), self.policy
                ).overall_risk
            except NotFoundError:
                continue
        return scores

    def get_pool_historical_data(self, pool_id: str, days: int = 30) -> list[HistoricalDataPoint]:
        return self.cache.get_or_fetch(
            cache_key("historical", pool_id, days),
            lambda: normalize_history(self.yields.fetch_chart(pool_id), days=days),
        )

    def analyze_pool_trends(self, pool_id: str, days: int = 30) -> TrendAnalysis:
        try:
            series = self.get_pool_historical_data(pool_id, days)
        except FetchError as exc:
            raise NoDataError(f"No historical data available for {pool_id}") from exc
        return analyze_trend(series)

    def calculate_impermanent_loss(self, price_change_percent: float) -> float:
        return impermanent_loss(price_change_percent)

    # -----------------
    # Portfolio and allocation
    # -----------------

    def analyze_portfolio(
        self, positions: Sequence[PortfolioPosition | Mapping[str, Any]]
    ) -> PortfolioAnalysis:
        parsed = [_position(p) for p in positions]
        market = [p.apy for p in self.get_top_yield_opportunities(PORTFOLIO_MARKET_N)]
        return analyze_portfolio(parsed, self.calculate_protocol_risk, market_top_yield=market)

    def recommend_allocation(
        self, risk_tier: RiskTier | str, usd_amount: float | None = None
    ) -> AllocationPlan:
        candidates = filter_pools(self._candidates(), min_tvl=self.min_tvl, max_apy=self.max_apy)
        return build_allocation(
            risk_tier,
            candidates,
            usd_amount=usd_amount,
            protocol_risk=self._protocol_risk(p.project for p in candidates),
        )

    def recommend_token_allocation(
        self, symbol: str, risk_tier: RiskTier | str, token_amount: float | None = None
    ) -> AllocationPlan:
        return build_token_allocation(
            symbol,
            risk_tier,
            self.get_token_yield_opportunities(symbol),
            token_amount=token_amount,
        )

    def validate_yield_opportunity(self, protocol: str, expected_apy: float) -> bool:
        """Whether the protocol's best-ranked pool still pays within 10% of ``expected_apy``."""

        pools = self.get_pools_by_protocol(protocol)
        current = pools[0].apy if pools else 0.0
        return abs(current - expected_apy) <= expected_apy * VALIDATION_TOLERANCE

    # -----------------
    # Overview
    # -----------------

    def get_market_snapshot(self) -> MarketSnapshot:
        results = fan_out(
            {
                "top-yields": lambda: self.get_top_yield_opportunities(MARKET_TOP_N),
                "stable-yields": self.get_stablecoin_yields,
                "protocols": self.get_protocols,
            },
            max_workers=self.max_workers,
        )
        top = results["top-yields"].data or []
        stable = results["stable-yields"].data or []
        protocols = results["protocols"].data or []
        leaders = sorted(protocols, key=lambda p: p.tvl, reverse=True)[:MARKET_TOP_N]
        return MarketSnapshot(
            top_yields=tuple(top),
            stable_yields=tuple(stable[:MARKET_STABLE_N]),
            protocols=tuple(leaders),
            average_yield=sum(p.apy for p in top) / len(top) if top else 0.0,
            total_tvl=sum(p.tvl for p in protocols),
            timestamp=datetime.now(tz=UTC).isoformat(),
        )

    def health_check(self) -> dict[str, Any]:
        """Probe each HTTP upstream directly, bypassing the cache."""

        results = fan_out(
            {
                "defillama": self.protocols.fetch,
                "yields": self.yields.fetch,
                "coingecko": self.prices.ping,
            },
            max_workers=self.max_workers,
        )
        apis = {name: result.ok for name, result in results.items()}
        return {"status": "healthy" if all(apis.values()) else "degraded", "apis": apis}


__all__ = ["YieldDataService"]
