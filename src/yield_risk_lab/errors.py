"""Exception taxonomy for YieldRiskLab."""

from __future__ import annotations


class YieldRiskLabError(Exception):
    """Base class for errors raised by :mod:`yield_risk_lab`."""


class FetchError(YieldRiskLabError):
    """Network or parsing failure inside an upstream adapter."""

    def __init__(self, source: str, cause: BaseException | str) -> None:
        self.source = source
        self.cause = cause
        super().__init__(f"{source}: {cause}")


class NoDataError(YieldRiskLabError):
    """Raised when an analysis has no samples to work with."""


class NotFoundError(YieldRiskLabError):
    """Unknown protocol or pool identifier."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} {name!r} not found")


class ConfigurationError(YieldRiskLabError):
    """Required settings (e.g. on-chain addresses) are missing."""


class StaleDataWarning(UserWarning):
    """A cached value older than its TTL was served after a failed refresh."""


__all__ = [
    "ConfigurationError",
    "FetchError",
    "NoDataError",
    "NotFoundError",
    "StaleDataWarning",
    "YieldRiskLabError",
]
