"""Value-weighted risk and yield summary of a set of positions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from ..core import PortfolioAnalysis, PortfolioPosition, RiskMetrics
from ..core.constants import (
    CONCENTRATION_SHARE,
    HIGH_PORTFOLIO_RISK,
    LOW_PORTFOLIO_RISK,
    LOW_YIELD_PCT,
    MARKET_YIELD_SHARE,
    MAX_RECOMMENDATIONS,
    PROTOCOL_ALERT_RISK,
)
from ..risk_scoring import round_half_up
from .metrics import weighted_mean

logger = logging.getLogger(__name__)


def _empty() -> PortfolioAnalysis:
    return PortfolioAnalysis(
        analysis="Portfolio analyzed: $0.00 across 0 positions. Expected yield: 0.00% APY, Risk score: 0.0/10",
        recommendations=(),
        risk_score=0.0,
        total_value=0.0,
        expected_yield=0.0,
    )


def analyze_portfolio(
    positions: Sequence[PortfolioPosition],
    risk_lookup: Callable[[str], RiskMetrics],
    *,
    market_top_yield: Iterable[float] | None = None,
) -> PortfolioAnalysis:
    """Summarise ``positions`` and derive ordered recommendations.

    ``risk_lookup`` maps a protocol name to its :class:`RiskMetrics`; it is
    expected to degrade to a neutral score rather than raise.  When
    ``market_top_yield`` (APYs of the best current opportunities) is given,
    a market-opportunity hint is added for portfolios yielding well below it.
    """

    total_value = sum(p.amount for p in positions)
    if not positions or total_value <= 0:
        return _empty()

    risk_metrics: dict[str, RiskMetrics] = {}
    for position in positions:
        if position.protocol not in risk_metrics:
            risk_metrics[position.protocol] = risk_lookup(position.protocol)

    amounts = [p.amount for p in positions]
    weighted_risk = weighted_mean([risk_metrics[p.protocol].overall_risk for p in positions], amounts)
    weighted_yield = weighted_mean([p.apy for p in positions], amounts)

    recommendations: list[str] = []
    if weighted_risk > HIGH_PORTFOLIO_RISK:
        recommendations.append("Portfolio risk is high - consider reducing exposure to risky protocols")
    elif weighted_risk < LOW_PORTFOLIO_RISK:
        recommendations.append(
            "Portfolio is conservative - consider adding moderate-risk, higher-yield positions"
        )

    if any(p.amount / total_value > CONCENTRATION_SHARE for p in positions):
        recommendations.append("High concentration detected - diversify across more protocols")

    if weighted_yield < LOW_YIELD_PCT:
        recommendations.append("Consider exploring higher-yield opportunities in lending or LP positions")

    for name, metrics in risk_metrics.items():
        if metrics.overall_risk > PROTOCOL_ALERT_RISK:
            recommendations.append(f"{name} has high risk ({metrics.overall_risk}/10) - monitor closely")
        if metrics.risk_factors:
            recommendations.append(f"{name} risks: {', '.join(metrics.risk_factors)}")

    top = [float(y) for y in market_top_yield or ()]
    if top:
        market_avg = sum(top) / len(top)
        if weighted_yield < market_avg * MARKET_YIELD_SHARE:
            recommendations.append(f"Market opportunity: Top yields averaging {market_avg:.2f}% APY")
    else:
        logger.debug("No market context supplied; skipping market comparison")

    risk_score = round_half_up(weighted_risk, 1)
    expected_yield = round_half_up(weighted_yield, 2)
    return PortfolioAnalysis(
        analysis=(
            f"Portfolio analyzed: ${total_value:,.2f} across {len(positions)} positions. "
            f"Expected yield: {expected_yield:.2f}% APY, Risk score: {risk_score:.1f}/10"
        ),
        recommendations=tuple(recommendations[:MAX_RECOMMENDATIONS]),
        risk_score=risk_score,
        total_value=total_value,
        expected_yield=expected_yield,
        risk_metrics=risk_metrics,
    )


__all__ = ["analyze_portfolio"]
