from __future__ import annotations

from pathlib import Path

import pytest

from yield_risk_lab.config import DEFAULTS, load_config

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "YIELD_RISK_CONFIG",
        "COINGECKO_API_KEY",
        "YIELD_RISK_SNAPSHOT_CSV",
        "ETHEREUM_RPC_URL",
        "BASE_RPC_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file() -> None:
    cfg = load_config(None)
    assert cfg["cache"]["ttl_seconds"] == 300
    assert cfg["http"]["timeout"] == 15.0
    assert cfg["filters"]["min_tvl"] == 1_000_000
    assert set(cfg["aave"]["networks"]) == {"ethereum", "base"}


def test_loads_example_config() -> None:
    cfg = load_config(ROOT / "configs" / "default.toml")
    assert cfg["snapshot_csv"] == "src/sample_pools.csv"
    assert cfg["output"]["outdir"] == "out"
    assert cfg["aave"]["networks"]["base"]["chain"] == "Base"


def test_file_merges_section_by_section(tmp_path: Path) -> None:
    path = tmp_path / "cfg.toml"
    path.write_text('[cache]\nttl_seconds = 60\n\n[aave.networks.polygon]\nrpc_url = "https://polygon.test"\n')
    cfg = load_config(path)
    assert cfg["cache"]["ttl_seconds"] == 60
    assert cfg["http"]["timeout"] == 15.0
    assert set(cfg["aave"]["networks"]) == {"ethereum", "base", "polygon"}
    assert DEFAULTS["cache"]["ttl_seconds"] == 300


def test_missing_file_warns_and_uses_defaults(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = load_config(tmp_path / "missing.toml")
    assert "[WARN] Config file not found" in capsys.readouterr().out
    assert cfg["cache"]["ttl_seconds"] == 300


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "cfg.toml"
    path.write_text("[pipeline]\nmax_workers = 2\n")
    monkeypatch.setenv("YIELD_RISK_CONFIG", str(path))
    monkeypatch.setenv("COINGECKO_API_KEY", "cg-demo")
    monkeypatch.setenv("YIELD_RISK_SNAPSHOT_CSV", "/data/pools.csv")
    monkeypatch.setenv("BASE_RPC_URL", "https://base.private")

    cfg = load_config()
    assert cfg["pipeline"]["max_workers"] == 2
    assert cfg["coingecko"]["api_key"] == "cg-demo"
    assert cfg["snapshot_csv"] == "/data/pools.csv"
    assert cfg["aave"]["networks"]["base"]["rpc_url"] == "https://base.private"
    assert cfg["aave"]["networks"]["ethereum"]["rpc_url"] == "https://eth.llamarpc.com"
