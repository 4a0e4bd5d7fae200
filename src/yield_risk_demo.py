from __future__ import annotations

import logging
import os
import sys
import warnings
from pathlib import Path

from yield_risk_lab import (
    NoDataError,
    PoolRepository,
    RiskTier,
    YieldDataService,
    load_config,
)

logger = logging.getLogger(__name__)

SAMPLE_SNAPSHOT = Path(__file__).with_name("sample_pools.csv")


def main() -> None:
    """Print a market overview and one allocation plan per risk tier."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg_file = os.getenv("YIELD_RISK_CONFIG") or (sys.argv[1] if len(sys.argv) > 1 else None)
    cfg = load_config(cfg_file)
    if not cfg.get("snapshot_csv") and SAMPLE_SNAPSHOT.is_file():
        cfg["snapshot_csv"] = str(SAMPLE_SNAPSHOT)

    amount = 10_000.0
    if amount_env := os.getenv("YIELD_RISK_AMOUNT"):
        try:
            amount = float(amount_env)
        except ValueError:
            logger.warning("Ignoring invalid YIELD_RISK_AMOUNT=%r", amount_env)

    service = YieldDataService.from_config(cfg)

    print("Upstream health:", service.health_check())

    top = service.get_top_yield_opportunities(limit=10)
    df = PoolRepository(top).to_dataframe()
    print(f"Top {len(df)} risk-adjusted opportunities:")
    if not df.empty:
        print(df[["project", "chain", "symbol", "tvl_usd", "apy"]].to_string(index=False))

    for tier in RiskTier:
        plan = service.recommend_allocation(tier, usd_amount=amount)
        print(f"\n{plan.reasoning} (confidence {plan.confidence:.0f})")
        for leg in plan.allocations:
            print(f"  {leg.percentage:6.2f}%  {leg.protocol:<16} {leg.token:<14} {leg.expected_apy:6.2f}% APY  risk {leg.risk_score:.1f}")

    if top:
        try:
            trend = service.analyze_pool_trends(top[0].pool_id)
        except NoDataError as exc:
            warnings.warn(f"Skipping trend analysis: {exc}", stacklevel=2)
        else:
            print(
                f"\nTrend for {top[0].project} {top[0].symbol}: APY {trend.apy_trend.value}, "
                f"TVL {trend.tvl_trend.value}, volatility {trend.volatility:.1f}%, "
                f"risk {trend.risk_score:.0f}/10 - {trend.recommendation}"
            )

    if outdir := cfg.get("output", {}).get("outdir"):
        path = Path(outdir)
        path.mkdir(parents=True, exist_ok=True)
        df.to_csv(path / "top_pools.csv", index=False)
        print(f"Wrote {path / 'top_pools.csv'}")


if __name__ == "__main__":
    main()
