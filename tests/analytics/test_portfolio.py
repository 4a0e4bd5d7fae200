from __future__ import annotations

import pytest

from yield_risk_lab.analytics import analyze_portfolio
from yield_risk_lab.core import PortfolioPosition, RiskMetrics
from yield_risk_lab.risk_scoring import NEUTRAL_RISK

SAFE = RiskMetrics(2, 3, 3, 4, 5, 3.2)
RISKY = RiskMetrics(9, 9, 9, 9, 8, 8.9, ("Low TVL (<$100M)", "No audits found"))


def _lookup(table: dict[str, RiskMetrics]):
    return lambda name: table.get(name, NEUTRAL_RISK)


def test_empty_portfolio() -> None:
    result = analyze_portfolio([], _lookup({}))
    assert result.total_value == 0.0
    assert result.risk_score == 0.0
    assert result.recommendations == ()


def test_zero_value_portfolio() -> None:
    result = analyze_portfolio([PortfolioPosition("Aave V3", "USDC", 0.0, 4.0)], _lookup({}))
    assert result.expected_yield == 0.0
    assert result.recommendations == ()


def test_conservative_concentrated_low_yield() -> None:
    positions = [
        PortfolioPosition("Aave V3", "USDC", 8_000, 4.0),
        PortfolioPosition("Lido", "STETH", 2_000, 3.0),
    ]
    result = analyze_portfolio(positions, _lookup({"Aave V3": SAFE, "Lido": SAFE}), market_top_yield=[10.0, 14.0])
    assert result.total_value == 10_000
    assert result.expected_yield == pytest.approx(3.8)
    assert result.risk_score == pytest.approx(3.2)
    assert result.recommendations == (
        "Portfolio is conservative - consider adding moderate-risk, higher-yield positions",
        "High concentration detected - diversify across more protocols",
        "Consider exploring higher-yield opportunities in lending or LP positions",
        "Market opportunity: Top yields averaging 12.00% APY",
    )
    assert result.analysis == (
        "Portfolio analyzed: $10,000.00 across 2 positions. Expected yield: 3.80% APY, Risk score: 3.2/10"
    )


def test_risky_positions_are_flagged() -> None:
    positions = [
        PortfolioPosition("Degen Farm", "FOO", 5_000, 40.0),
        PortfolioPosition("Perp Vault", "ETH", 5_000, 25.0),
    ]
    result = analyze_portfolio(positions, _lookup({"Degen Farm": RISKY, "Perp Vault": RISKY}))
    recs = result.recommendations
    assert recs[0] == "Portfolio risk is high - consider reducing exposure to risky protocols"
    assert "Degen Farm has high risk (8.9/10) - monitor closely" in recs
    assert "Perp Vault risks: Low TVL (<$100M), No audits found" in recs
    assert not any("concentration" in r for r in recs)
    assert result.risk_score == pytest.approx(8.9)
    assert result.risk_metrics["Degen Farm"] is RISKY


def test_recommendations_are_capped() -> None:
    positions = [PortfolioPosition(f"Farm {i}", "FOO", 100, 1.0) for i in range(6)]
    result = analyze_portfolio(positions, _lookup({f"Farm {i}": RISKY for i in range(6)}), market_top_yield=[20.0])
    assert len(result.recommendations) == 8


def test_unknown_protocols_use_neutral_risk() -> None:
    result = analyze_portfolio([PortfolioPosition("Mystery", "USDC", 100, 6.0)], _lookup({}))
    assert result.risk_score == 6.0
    assert "Mystery risks: Risk calculation unavailable" in result.recommendations


def test_protocol_alerts_are_grouped_per_protocol() -> None:
    positions = [PortfolioPosition(f"Farm {i}", "FOO", 100, 1.0) for i in range(6)]
    result = analyze_portfolio(positions, _lookup({f"Farm {i}": RISKY for i in range(6)}))
    factors = "Low TVL (<$100M), No audits found"
    assert list(result.recommendations[2:]) == [
        "Farm 0 has high risk (8.9/10) - monitor closely",
        f"Farm 0 risks: {factors}",
        "Farm 1 has high risk (8.9/10) - monitor closely",
        f"Farm 1 risks: {factors}",
        "Farm 2 has high risk (8.9/10) - monitor closely",
        f"Farm 2 risks: {factors}",
    ]
