"""DefiLlama adapters: protocol directory and yield pool directory."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import FetchError
from .http import DEFAULT_TIMEOUT, get_json

logger = logging.getLogger(__name__)


class ProtocolDirectorySource:
    """HTTP client for https://api.llama.fi/protocols."""

    name = "defillama-protocols"
    BASE_URL = "https://api.llama.fi"

    def __init__(self, base_url: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout

    def fetch(self) -> list[dict[str, Any]]:
        raw = get_json(self.name, f"{self.base_url}/protocols", timeout=self.timeout)
        if not isinstance(raw, list):
            raise FetchError(self.name, "unexpected protocol directory payload")
        return raw

    def fetch_chain_tvl(self, chain: str) -> float:
        """Latest TVL of ``chain`` from its historical TVL series."""

        raw = get_json(
            self.name, f"{self.base_url}/v2/historicalChainTvl/{chain}", timeout=self.timeout
        )
        if not isinstance(raw, list):
            raise FetchError(self.name, f"unexpected chain TVL payload for {chain}")
        if not raw:
            return 0.0
        return float(raw[-1].get("tvl") or 0.0)


class YieldPoolSource:
    """HTTP client for https://yields.llama.fi (pool list and pool charts)."""

    name = "defillama-yields"
    BASE_URL = "https://yields.llama.fi"

    def __init__(self, base_url: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout

    def fetch(self) -> list[dict[str, Any]]:
        raw = get_json(self.name, f"{self.base_url}/pools", timeout=self.timeout)
        data = raw.get("data") if isinstance(raw, dict) else raw
        if not isinstance(data, list):
            raise FetchError(self.name, "unexpected pools payload")
        logger.info("DefiLlama returned %d pools", len(data))
        return data

    def fetch_chart(self, pool_id: str) -> list[dict[str, Any]]:
        raw = get_json(self.name, f"{self.base_url}/chart/{pool_id}", timeout=self.timeout)
        data = raw.get("data") if isinstance(raw, dict) else raw
        if not isinstance(data, list):
            raise FetchError(self.name, f"invalid historical data format for {pool_id}")
        return data


__all__ = ["ProtocolDirectorySource", "YieldPoolSource"]
