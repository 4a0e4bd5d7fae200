"""Upstream adapters used by :mod:`yield_risk_lab`.

Each adapter knows how to fetch and shape its own raw payload only; the
canonical records are produced by :mod:`yield_risk_lab.normalize`.
"""

from __future__ import annotations

from typing import Protocol

from ..core import Pool
from .aave import AaveNetwork, AaveReserveSource
from .coingecko import CoinGeckoPriceSource
from .csv import CSVSource
from .defillama import ProtocolDirectorySource, YieldPoolSource
from .static import DEFAULT_POOLS, StaticPoolSource


class PoolSource(Protocol):
    """Adapter protocol for sources that already return canonical pools."""

    name: str

    def fetch(self) -> list[Pool]: ...


__all__ = [
    "AaveNetwork",
    "AaveReserveSource",
    "CSVSource",
    "CoinGeckoPriceSource",
    "DEFAULT_POOLS",
    "PoolSource",
    "ProtocolDirectorySource",
    "StaticPoolSource",
    "YieldPoolSource",
]
