from __future__ import annotations

import json
from pathlib import Path

import pytest

from yield_risk_lab.errors import FetchError
from yield_risk_lab.sources import ProtocolDirectorySource, YieldPoolSource

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def _fixture(name: str) -> object:
    return json.loads((FIXTURES / name).read_text())


def test_protocol_directory_returns_raw_list(fake_http) -> None:
    fake = fake_http({"/protocols": _fixture("defillama_protocols.json")})
    raw = ProtocolDirectorySource().fetch()
    assert [p["name"] for p in raw][:2] == ["Aave V3", "Lido"]
    req = fake.requests[0]
    assert req.full_url == "https://api.llama.fi/protocols"
    assert req.get_header("Accept") == "application/json"
    assert req.get_header("User-agent") == "YieldRiskLab/1.0"


def test_chain_tvl_takes_last_point(fake_http) -> None:
    fake_http({"/v2/historicalChainTvl/Ethereum": _fixture("defillama_chain_tvl.json")})
    assert ProtocolDirectorySource().fetch_chain_tvl("Ethereum") == pytest.approx(52_500_000_000)


def test_chain_tvl_empty_series_is_zero(fake_http) -> None:
    fake_http({"/v2/historicalChainTvl/": []})
    assert ProtocolDirectorySource().fetch_chain_tvl("Nowhere") == 0.0


def test_yield_pools_unwraps_data(fake_http) -> None:
    fake_http({"/pools": _fixture("defillama_pools.json")})
    raw = YieldPoolSource().fetch()
    assert len(raw) == 11
    assert raw[0]["project"] == "aave-v3"


def test_chart_uses_pool_id(fake_http) -> None:
    fake = fake_http({"/chart/": _fixture("defillama_chart.json")})
    rows = YieldPoolSource(base_url="https://example.test/").fetch_chart("abc-123")
    assert len(rows) == 5
    assert fake.requests[0].full_url == "https://example.test/chart/abc-123"


def test_unexpected_payload_raises_fetch_error(fake_http) -> None:
    fake_http({"/pools": {"status": "error"}})
    with pytest.raises(FetchError) as info:
        YieldPoolSource().fetch()
    assert info.value.source == "defillama-yields"


def test_network_error_is_wrapped(fake_http) -> None:
    fake_http({"/protocols": TimeoutError("timed out")})
    with pytest.raises(FetchError) as info:
        ProtocolDirectorySource().fetch()
    assert isinstance(info.value.cause, TimeoutError)


def test_malformed_json_is_wrapped(fake_http) -> None:
    fake_http({"/protocols": b"<html>"})
    with pytest.raises(FetchError):
        ProtocolDirectorySource().fetch()
