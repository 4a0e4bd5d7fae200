"""Risk-tiered allocation plans built from ranked pool candidates.

Plans split each tier's category weights (stable / blue-chip / risk assets)
across the best-ranked matching pools.  The reported ``confidence`` is an
advisory heuristic bounded to [0, 95]; it is not a calibrated probability
and should be presented to users as such.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from ..core import AllocationPlan, Pool, ProtocolAllocation, RiskTier
from ..core.constants import (
    BLUECHIP_TOKENS,
    CATEGORY_DEFAULT_RISK,
    CONFIDENCE_BASE,
    CONFIDENCE_FALLBACK_BASE,
    CONFIDENCE_MAX,
    CONFIDENCE_STEP,
    DIVERSIFIED_PROTOCOLS,
    SPLIT_PATTERNS,
    STABLE_TOKENS,
    TIER_CATEGORY_LEGS,
    TIER_CATEGORY_WEIGHTS,
    TOKEN_ALIASES,
    TOKEN_TIER_RISK,
    TOKEN_TIER_SPLITS,
)
from ..errors import NoDataError
from ..normalize import rank_pools
from ..risk_scoring import clamp_score
from ..sources.static import DEFAULT_POOLS

logger = logging.getLogger(__name__)

CATEGORIES = ("stable", "bluechip", "risk")
CATEGORY_LABELS = {"stable": "stable", "bluechip": "blue-chip", "risk": "risk assets"}


def classify_pool(pool: Pool) -> str:
    """Allocation category of ``pool`` from its component symbols."""

    tokens = pool.tokens
    if tokens and all(t in STABLE_TOKENS for t in tokens):
        return "stable"
    if tokens and all(t in BLUECHIP_TOKENS for t in tokens):
        return "bluechip"
    return "risk"


def _pick(ranked: Iterable[Pool], category: str, n: int, used: set[str]) -> list[Pool]:
    picked: list[Pool] = []
    for pool in ranked:
        if len(picked) >= n:
            break
        if pool.pool_id in used or classify_pool(pool) != category:
            continue
        picked.append(pool)
    return picked


def _leg_risk(pool: Pool, category: str, protocol_risk: Mapping[str, float] | None) -> float:
    if protocol_risk and pool.project in protocol_risk:
        return clamp_score(float(protocol_risk[pool.project]))
    return clamp_score(CATEGORY_DEFAULT_RISK[category])


def _confidence(tier: RiskTier, legs: list[ProtocolAllocation], used_fallback: bool) -> float:
    score = CONFIDENCE_FALLBACK_BASE if used_fallback else CONFIDENCE_BASE
    if tier is RiskTier.AGGRESSIVE:
        score -= CONFIDENCE_STEP
    if len({leg.protocol for leg in legs}) >= DIVERSIFIED_PROTOCOLS:
        score += CONFIDENCE_STEP
    if len(legs) <= 1:
        score -= CONFIDENCE_STEP
    return max(0.0, min(CONFIDENCE_MAX, score))


def expected_portfolio_apy(allocations: Iterable[ProtocolAllocation]) -> float:
    return sum(a.expected_apy * a.percentage / 100.0 for a in allocations)


def build_allocation(
    risk_tier: RiskTier | str,
    candidates: Iterable[Pool],
    *,
    usd_amount: float | None = None,
    protocol_risk: Mapping[str, float] | None = None,
    fallback_pools: Iterable[Pool] = DEFAULT_POOLS,
) -> AllocationPlan:
    """Allocate the tier's category weights across the top-ranked candidates.

    Parameters
    ----------
    risk_tier:
        ``conservative``, ``moderate`` or ``aggressive``.
    candidates:
        Normalized pools; they are re-ranked by risk-adjusted score.
    usd_amount:
        Optional notional used to fill each leg's ``amount``.
    protocol_risk:
        Optional ``project -> overall_risk`` mapping; categories fall back to
        fixed default scores otherwise.
    fallback_pools:
        Static table consulted for a category with no matching candidate.
    """

    tier = RiskTier.parse(risk_tier)
    ranked = rank_pools(candidates)
    fallback_ranked = rank_pools(fallback_pools)
    weights = TIER_CATEGORY_WEIGHTS[tier.value]
    leg_counts = TIER_CATEGORY_LEGS[tier.value]

    used: set[str] = set()
    legs: list[ProtocolAllocation] = []
    fallback_categories: list[str] = []
    for category in CATEGORIES:
        picked = _pick(ranked, category, leg_counts[category], used)
        if not picked:
            picked = _pick(fallback_ranked, category, leg_counts[category], used)
            if picked:
                fallback_categories.append(category)
                logger.warning("No %s candidates; using static defaults", category)
        if not picked:
            continue
        for pool, share in zip(picked, SPLIT_PATTERNS[len(picked)]):
            used.add(pool.pool_id)
            pct = round(weights[category] * share, 2)
            legs.append(
                ProtocolAllocation(
                    protocol=pool.project,
                    percentage=pct,
                    expected_apy=pool.apy,
                    risk_score=_leg_risk(pool, category, protocol_risk),
                    tvl=pool.tvl_usd,
                    chain=pool.chain,
                    token=pool.symbol,
                    category=category,
                    amount=usd_amount * pct / 100.0 if usd_amount is not None else None,
                )
            )

    expected = expected_portfolio_apy(legs)
    used_fallback = bool(fallback_categories)
    split = " / ".join(f"{weights[c]:g}% {CATEGORY_LABELS[c]}" for c in CATEGORIES)
    protocols = ", ".join(dict.fromkeys(leg.protocol for leg in legs)) or "none"
    reasoning = (
        f"{tier.value.capitalize()} strategy: {split} across {len(legs)} positions "
        f"({protocols}). Target APY: {expected:.2f}%."
    )
    if used_fallback:
        reasoning += " Static defaults used for: " + ", ".join(
            CATEGORY_LABELS[c] for c in fallback_categories
        ) + "."

    return AllocationPlan(
        risk_tier=tier,
        allocations=tuple(legs),
        expected_apy=expected,
        confidence=_confidence(tier, legs, used_fallback),
        reasoning=reasoning,
        used_fallback=used_fallback,
    )


def build_token_allocation(
    symbol: str,
    risk_tier: RiskTier | str,
    pools: Iterable[Pool],
    *,
    token_amount: float | None = None,
) -> AllocationPlan:
    """Split a single-token deposit across the best-yielding pools for it.

    Conservative uses a 70/30 split over the top two pools, moderate 60/40
    and aggressive puts everything into the best one.  Raises
    :class:`NoDataError` when no pool carries the token.
    """

    tier = RiskTier.parse(risk_tier)
    key = symbol.upper()
    aliases = set(TOKEN_ALIASES.get(key, (key,)))
    matching = sorted(
        (p for p in pools if p.apy > 0 and aliases.intersection(p.tokens)),
        key=lambda p: p.apy,
        reverse=True,
    )
    if not matching:
        raise NoDataError(f"No yield opportunities found for {symbol}")

    splits = TOKEN_TIER_SPLITS[tier.value]
    chosen = matching[: len(splits)]
    if len(chosen) < len(splits):
        splits = (100.0,)
        chosen = chosen[:1]

    legs = [
        ProtocolAllocation(
            protocol=pool.project,
            percentage=pct,
            expected_apy=pool.apy,
            risk_score=TOKEN_TIER_RISK[tier.value],
            tvl=pool.tvl_usd,
            chain=pool.chain,
            token=symbol,
            category=classify_pool(pool),
            amount=token_amount * pct / 100.0 if token_amount is not None else None,
        )
        for pool, pct in zip(chosen, splits)
    ]

    avg_apy = sum(p.apy for p in matching) / len(matching)
    confidence = min(
        CONFIDENCE_MAX,
        70.0
        + len(matching) * 5.0
        + (CONFIDENCE_STEP if avg_apy > 5 else 0.0)
        + (CONFIDENCE_STEP if len(legs) > 1 else 0.0),
    )
    placements = ", ".join(
        f"{leg.protocol} on {leg.chain} ({leg.expected_apy:.2f}% APY, {leg.percentage:g}%)"
        for leg in legs
    )
    return AllocationPlan(
        risk_tier=tier,
        allocations=tuple(legs),
        expected_apy=expected_portfolio_apy(legs),
        confidence=confidence,
        reasoning=f"{tier.value.capitalize()} strategy for {symbol}: {placements}.",
    )


__all__ = [
    "build_allocation",
    "build_token_allocation",
    "classify_pool",
    "expected_portfolio_apy",
]
