from __future__ import annotations

from collections.abc import Sequence
import math

import pandas as pd


def _coerce_float(value: object) -> float:
    """Best-effort conversion to ``float`` returning ``nan`` on failure."""

    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return float("nan")


def weighted_mean(values: Sequence[object], weights: Sequence[object]) -> float:
    """Compute a weighted mean while skipping ``NaN`` pairs and zero weight sums."""

    vals = list(values)
    wts = list(weights)
    if not vals or not wts or len(vals) != len(wts):
        return float("nan")

    contributions: list[float] = []
    cleaned_weights: list[float] = []
    for raw_value, raw_weight in zip(vals, wts):
        value = _coerce_float(raw_value)
        weight = _coerce_float(raw_weight)
        if math.isnan(value) or math.isnan(weight):
            continue
        contributions.append(value * weight)
        cleaned_weights.append(weight)

    if not contributions:
        return float("nan")

    weight_sum = math.fsum(cleaned_weights)
    if not math.isfinite(weight_sum) or weight_sum == 0.0:
        return float("nan")

    numerator = math.fsum(contributions)
    if not math.isfinite(numerator):
        return float("nan")

    return numerator / weight_sum


def coefficient_of_variation(values: pd.Series) -> float:
    """Population standard deviation over mean, in percent.

    Returns ``0.0`` for fewer than two samples or a zero mean.
    """

    clean = pd.Series(values, dtype=float).dropna()
    if clean.size < 2:
        return 0.0
    mean = float(clean.mean())
    if mean == 0.0:
        return 0.0
    return float(clean.std(ddof=0)) / mean * 100.0


def impermanent_loss(price_change_percent: float) -> float:
    """Impermanent loss (percent) of a 50/50 pool after a relative price move.

    ``il = |2 * sqrt(1 + d) / (2 + d) - 1| * 100`` with ``d = pct / 100``.
    The loss is not symmetric in ``d``: +50% and -50% give different values.
    """

    ratio = 1.0 + float(price_change_percent) / 100.0
    if ratio < 0:
        raise ValueError("price change cannot be below -100%")
    il = 2.0 * math.sqrt(ratio) / (1.0 + ratio) - 1.0
    return abs(il) * 100.0


__all__ = [
    "coefficient_of_variation",
    "impermanent_loss",
    "weighted_mean",
]
