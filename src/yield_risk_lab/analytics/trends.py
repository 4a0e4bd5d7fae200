"""Rolling statistics over a pool's chart history."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from ..core import HistoricalDataPoint, HistoryRepository, Trend, TrendAnalysis
from ..core.constants import (
    APY_SPIKE_MULTIPLE,
    ELEVATED_VOLATILITY_PCT,
    HIGH_VOLATILITY_PCT,
    LOW_POOL_TVL_USD,
    TREND_DOWN_RATIO,
    TREND_UP_RATIO,
    TREND_WINDOW,
)
from ..errors import NoDataError
from .metrics import coefficient_of_variation


def classify_trend(values: pd.Series, window: int = TREND_WINDOW) -> Trend:
    """Compare the mean of the last ``window`` samples with the ``window`` before.

    A ratio above 1.05 is ``increasing``, below 0.95 ``decreasing``.  Without
    a preceding window (fewer than ``window + 1`` samples) the series is
    ``stable``.
    """

    clean = pd.Series(values, dtype=float).dropna()
    recent = clean.iloc[-window:]
    previous = clean.iloc[-2 * window : -window]
    if recent.empty or previous.empty:
        return Trend.STABLE
    recent_avg = float(recent.mean())
    previous_avg = float(previous.mean())
    if recent_avg > previous_avg * TREND_UP_RATIO:
        return Trend.INCREASING
    if recent_avg < previous_avg * TREND_DOWN_RATIO:
        return Trend.DECREASING
    return Trend.STABLE


def _recommend(risk_score: float, apy_trend: Trend, tvl_trend: Trend) -> str:
    if risk_score <= 3 and apy_trend is not Trend.DECREASING:
        return "Low risk, good opportunity for stable yields"
    if risk_score <= 6 and tvl_trend is Trend.INCREASING:
        return "Moderate risk, monitor closely"
    if risk_score >= 7:
        return "High risk, consider smaller allocation or avoid"
    return "Mixed signals, requires careful analysis"


def analyze_trend(series: Sequence[HistoricalDataPoint]) -> TrendAnalysis:
    """Trend direction, volatility and a composite 1-10 risk score.

    Raises :class:`NoDataError` for an empty series.
    """

    if not series:
        raise NoDataError("No historical data available")

    frame = HistoryRepository(series).to_frame()
    apy = frame["apy"][frame["apy"] > 0]
    tvl = frame["tvl_usd"][frame["tvl_usd"] > 0]

    average_apy = float(apy.mean()) if not apy.empty else 0.0
    current_apy = float(apy.iloc[-1]) if not apy.empty else 0.0
    apy_trend = classify_trend(apy)
    tvl_trend = classify_trend(tvl)
    volatility = coefficient_of_variation(apy)

    risk = 5
    if volatility > HIGH_VOLATILITY_PCT:
        risk += 2
    elif volatility > ELEVATED_VOLATILITY_PCT:
        risk += 1
    if tvl_trend is Trend.DECREASING:
        risk += 1
    if current_apy > average_apy * APY_SPIKE_MULTIPLE:
        risk += 1
    if not tvl.empty and float(tvl.iloc[-1]) < LOW_POOL_TVL_USD:
        risk += 1
    risk_score = float(min(10, max(1, risk)))

    return TrendAnalysis(
        average_apy=average_apy,
        current_apy=current_apy,
        apy_trend=apy_trend,
        tvl_trend=tvl_trend,
        volatility=volatility,
        risk_score=risk_score,
        recommendation=_recommend(risk_score, apy_trend, tvl_trend),
    )


__all__ = ["analyze_trend", "classify_trend"]
