"""Configuration loading for YieldRiskLab."""

from __future__ import annotations

import copy
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping, cast

from .cache import DEFAULT_TTL_SECONDS
from .core.constants import DEFAULT_MIN_TVL_USD, RANKED_MAX_APY
from .sources.http import DEFAULT_TIMEOUT

DEFAULTS: dict[str, Any] = {
    "cache": {"ttl_seconds": DEFAULT_TTL_SECONDS},
    "http": {
        "timeout": DEFAULT_TIMEOUT,
        "protocols_url": "https://api.llama.fi",
        "yields_url": "https://yields.llama.fi",
        "coingecko_url": "https://api.coingecko.com/api/v3",
    },
    "coingecko": {"api_key": None},
    "filters": {"min_tvl": DEFAULT_MIN_TVL_USD, "max_apy": RANKED_MAX_APY},
    "pipeline": {"max_workers": 4},
    "snapshot_csv": None,
    "output": {"outdir": None},
    "aave": {
        "networks": {
            "ethereum": {
                "chain": "Ethereum",
                "rpc_url": "https://eth.llamarpc.com",
                "data_provider": "0x41393e5e337606dc3821075Af65AeE84D7688CBD",
            },
            "base": {
                "chain": "Base",
                "rpc_url": "https://mainnet.base.org",
                "data_provider": "0xd82a47fdebB5bf5329b09441C3DaB4b5df2153Ad",
            },
        },
    },
}


def _merge(target: dict[str, Any], overrides: Mapping[str, Any]) -> None:
    for k, v in overrides.items():
        if isinstance(v, Mapping) and isinstance(target.get(k), dict):
            _merge(cast(dict, target[k]), v)
        else:
            target[k] = v


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file and merge with defaults.

    Parameters
    ----------
    path:
        Optional path to a configuration file. When ``None`` the
        ``YIELD_RISK_CONFIG`` environment variable is consulted; a missing
        file falls back to the built-in defaults.

    Returns
    -------
    dict[str, Any]
        Configuration dictionary with file and environment overrides applied.
        Environment variables win over the file: ``COINGECKO_API_KEY``,
        ``YIELD_RISK_SNAPSHOT_CSV`` and ``<NETWORK>_RPC_URL`` per Aave network.
    """

    cfg = copy.deepcopy(DEFAULTS)
    path = path or os.getenv("YIELD_RISK_CONFIG")
    cfg_path = Path(path) if path else None

    if cfg_path and cfg_path.is_file():
        with open(cfg_path, "rb") as f:
            _merge(cfg, tomllib.load(f))
    elif cfg_path:
        print(f"[WARN] Config file not found at {cfg_path}. Using defaults.")

    if api_key := os.getenv("COINGECKO_API_KEY"):
        cfg["coingecko"]["api_key"] = api_key
    if snapshot := os.getenv("YIELD_RISK_SNAPSHOT_CSV"):
        cfg["snapshot_csv"] = snapshot
    for name, network in cfg["aave"]["networks"].items():
        if rpc := os.getenv(f"{name.upper()}_RPC_URL"):
            network["rpc_url"] = rpc

    return cfg


__all__ = ["DEFAULTS", "load_config"]
