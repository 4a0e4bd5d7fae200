"""CoinGecko market price adapter."""

from __future__ import annotations

from typing import Any, Sequence

from ..errors import FetchError
from .http import DEFAULT_TIMEOUT, get_json


class CoinGeckoPriceSource:
    """HTTP client for ``/coins/markets`` of the CoinGecko v3 API."""

    name = "coingecko"
    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @property
    def headers(self) -> dict[str, str]:
        return {"x-cg-demo-api-key": self.api_key} if self.api_key else {}

    def fetch(self, token_ids: Sequence[str]) -> list[dict[str, Any]]:
        if not token_ids:
            return []
        params = {
            "vs_currency": "usd",
            "ids": ",".join(token_ids),
            "order": "market_cap_desc",
            "per_page": 250,
            "page": 1,
            "sparkline": "false",
            "price_change_percentage": "24h,7d",
        }
        raw = get_json(
            self.name,
            f"{self.base_url}/coins/markets",
            params=params,
            headers=self.headers,
            timeout=self.timeout,
        )
        if not isinstance(raw, list):
            raise FetchError(self.name, "unexpected markets payload")
        return raw

    def ping(self) -> bool:
        get_json(self.name, f"{self.base_url}/ping", headers=self.headers, timeout=self.timeout)
        return True


__all__ = ["CoinGeckoPriceSource"]
