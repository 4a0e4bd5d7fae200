from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest

from yield_risk_lab.errors import FetchError
from yield_risk_lab.normalize import normalize_prices, price_map
from yield_risk_lab.sources import CoinGeckoPriceSource

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def test_markets_query_parameters(fake_http) -> None:
    fake = fake_http({"/coins/markets": json.loads((FIXTURES / "coingecko_markets.json").read_text())})
    raw = CoinGeckoPriceSource(api_key="demo-key").fetch(["ethereum", "weth"])
    assert len(raw) == 4

    req = fake.requests[0]
    query = parse_qs(urlsplit(req.full_url).query)
    assert query["vs_currency"] == ["usd"]
    assert query["ids"] == ["ethereum,weth"]
    assert query["per_page"] == ["250"]
    assert query["price_change_percentage"] == ["24h,7d"]
    assert req.get_header("X-cg-demo-api-key") == "demo-key"


def test_no_api_key_sends_no_key_header(fake_http) -> None:
    fake = fake_http({"/coins/markets": []})
    CoinGeckoPriceSource().fetch(["ethereum"])
    assert fake.requests[0].get_header("X-cg-demo-api-key") is None


def test_empty_ids_skip_the_request(fake_http) -> None:
    fake = fake_http({})
    assert CoinGeckoPriceSource().fetch([]) == []
    assert fake.requests == []


def test_ping_propagates_failures(fake_http) -> None:
    fake_http({"/ping": OSError("connection refused")})
    with pytest.raises(FetchError):
        CoinGeckoPriceSource().ping()


def test_prices_are_normalized() -> None:
    raw = json.loads((FIXTURES / "coingecko_markets.json").read_text())
    prices = normalize_prices(raw)
    assert [p.id for p in prices] == ["ethereum", "weth", "wrapped-bitcoin"]
    assert prices[0].symbol == "ETH"
    assert prices[2].price_change_7d is None
    assert price_map(prices)["WBTC"] == pytest.approx(64210.0)
