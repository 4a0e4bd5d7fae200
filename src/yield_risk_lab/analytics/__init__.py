"""Analytics helpers: trends, allocation plans and portfolio summaries."""

from .allocation import build_allocation, build_token_allocation, classify_pool
from .metrics import coefficient_of_variation, impermanent_loss, weighted_mean
from .portfolio import analyze_portfolio
from .trends import analyze_trend, classify_trend

__all__ = [
    "analyze_portfolio",
    "analyze_trend",
    "build_allocation",
    "build_token_allocation",
    "classify_pool",
    "classify_trend",
    "coefficient_of_variation",
    "impermanent_loss",
    "weighted_mean",
]
