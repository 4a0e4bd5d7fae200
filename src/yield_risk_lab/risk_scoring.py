"""Heuristic multi-dimensional risk scoring for DeFi protocols."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .core.constants import DEFAULT_RISK_POLICY, RiskPolicy
from .core.models import RiskMetrics

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .core import DefiProtocol

NEUTRAL_RISK = RiskMetrics(
    protocol_risk=6.0,
    smart_contract_risk=6.0,
    liquidity_risk=6.0,
    market_risk=6.0,
    composability_risk=6.0,
    overall_risk=6.0,
    risk_factors=("Risk calculation unavailable",),
)


def round_half_up(value: float, digits: int = 1) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def clamp_score(value: float, policy: RiskPolicy = DEFAULT_RISK_POLICY) -> float:
    return max(policy.min_score, min(policy.max_score, value))


def overall_risk(
    protocol_risk: float,
    smart_contract_risk: float,
    liquidity_risk: float,
    market_risk: float,
    composability_risk: float,
    policy: RiskPolicy = DEFAULT_RISK_POLICY,
) -> float:
    """Fixed weighted average of the five sub-scores, rounded to one decimal."""

    w = policy.weights
    raw = (
        protocol_risk * w["protocol_risk"]
        + smart_contract_risk * w["smart_contract_risk"]
        + liquidity_risk * w["liquidity_risk"]
        + market_risk * w["market_risk"]
        + composability_risk * w["composability_risk"]
    )
    return round_half_up(raw, 1)


def score_protocol(
    protocol: "DefiProtocol", policy: RiskPolicy = DEFAULT_RISK_POLICY
) -> RiskMetrics:
    """Score ``protocol`` from its current snapshot only.

    Every sub-score starts at ``policy.base_score``, is adjusted by the TVL,
    audit, chain-count, category and 7-day TVL change rules, and is clamped
    to ``[1, 10]``.
    """

    factors: list[str] = []
    protocol_risk = smart_contract_risk = liquidity_risk = policy.base_score
    market_risk = composability_risk = policy.base_score

    if protocol.tvl > policy.very_high_tvl:
        protocol_risk -= 2
        liquidity_risk -= 2
    elif protocol.tvl > policy.high_tvl:
        protocol_risk -= 1
        liquidity_risk -= 1
    elif protocol.tvl < policy.low_tvl:
        protocol_risk += 2
        liquidity_risk += 2
        factors.append("Low TVL (<$100M)")

    if protocol.has_audits:
        smart_contract_risk -= 2
    else:
        smart_contract_risk += 1
        factors.append("No audits found")

    if len(protocol.chains) > policy.max_chains:
        composability_risk += 1
        factors.append("Multi-chain complexity")

    if protocol.category in policy.high_risk_categories:
        market_risk += 2
        protocol_risk += 1
        factors.append(f"High-risk category: {protocol.category}")
    elif protocol.category in policy.low_risk_categories:
        market_risk -= 1
        protocol_risk -= 1

    if protocol.change_7d is not None:
        if protocol.change_7d < policy.severe_tvl_decline_pct:
            liquidity_risk += 2
            factors.append("Significant TVL decline (>20% in 7d)")
        elif protocol.change_7d < policy.tvl_decline_pct:
            liquidity_risk += 1
            factors.append("TVL decline (>10% in 7d)")

    scores = [
        clamp_score(s, policy)
        for s in (protocol_risk, smart_contract_risk, liquidity_risk, market_risk, composability_risk)
    ]
    return RiskMetrics(*scores, overall_risk(*scores, policy=policy), tuple(factors))


__all__ = ["NEUTRAL_RISK", "clamp_score", "overall_risk", "round_half_up", "score_protocol"]
