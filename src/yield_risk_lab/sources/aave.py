"""On-chain Aave v3 reserve reader.

Reads every reserve of a market through the ``AaveProtocolDataProvider``
helper contract and returns raw rows; conversion to :class:`Pool` records
(rates in RAY, balances in token units) happens in
:func:`yield_risk_lab.normalize.normalize_reserves`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from web3 import Web3

from ..errors import ConfigurationError, FetchError
from .http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

PROTOCOL_DATA_PROVIDER_ABI = [
    {
        "inputs": [],
        "name": "getAllReservesTokens",
        "outputs": [
            {
                "components": [
                    {"name": "symbol", "type": "string"},
                    {"name": "tokenAddress", "type": "address"},
                ],
                "name": "",
                "type": "tuple[]",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "asset", "type": "address"}],
        "name": "getReserveConfigurationData",
        "outputs": [
            {"name": "decimals", "type": "uint256"},
            {"name": "ltv", "type": "uint256"},
            {"name": "liquidationThreshold", "type": "uint256"},
            {"name": "liquidationBonus", "type": "uint256"},
            {"name": "reserveFactor", "type": "uint256"},
            {"name": "usageAsCollateralEnabled", "type": "bool"},
            {"name": "borrowingEnabled", "type": "bool"},
            {"name": "stableBorrowRateEnabled", "type": "bool"},
            {"name": "isActive", "type": "bool"},
            {"name": "isFrozen", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "asset", "type": "address"}],
        "name": "getReserveData",
        "outputs": [
            {"name": "unbacked", "type": "uint256"},
            {"name": "accruedToTreasuryScaled", "type": "uint256"},
            {"name": "totalAToken", "type": "uint256"},
            {"name": "totalStableDebt", "type": "uint256"},
            {"name": "totalVariableDebt", "type": "uint256"},
            {"name": "liquidityRate", "type": "uint256"},
            {"name": "variableBorrowRate", "type": "uint256"},
            {"name": "stableBorrowRate", "type": "uint256"},
            {"name": "averageStableBorrowRate", "type": "uint256"},
            {"name": "liquidityIndex", "type": "uint256"},
            {"name": "variableBorrowIndex", "type": "uint256"},
            {"name": "lastUpdateTimestamp", "type": "uint40"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class AaveNetwork:
    """Connection settings of one Aave v3 market."""

    name: str
    chain: str
    rpc_url: str | None
    data_provider: str | None

    @classmethod
    def from_mapping(cls, name: str, raw: Mapping[str, Any]) -> "AaveNetwork":
        return cls(
            name=name,
            chain=str(raw.get("chain") or name.capitalize()),
            rpc_url=raw.get("rpc_url") or None,
            data_provider=raw.get("data_provider") or None,
        )


class AaveReserveSource:
    """web3 client reading reserve state from Aave v3 markets."""

    name = "aave-v3"

    def __init__(
        self,
        networks: Mapping[str, AaveNetwork] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.networks: dict[str, AaveNetwork] = dict(networks or {})
        self.timeout = timeout

    def _network(self, network: str) -> AaveNetwork:
        cfg = self.networks.get(network)
        if cfg is None or not cfg.rpc_url or not cfg.data_provider:
            raise ConfigurationError(
                f"Aave network {network!r} needs both rpc_url and data_provider"
            )
        return cfg

    def _contract(self, cfg: AaveNetwork) -> Any:
        w3 = Web3(Web3.HTTPProvider(cfg.rpc_url, request_kwargs={"timeout": self.timeout}))
        return w3.eth.contract(
            address=Web3.to_checksum_address(cfg.data_provider),
            abi=PROTOCOL_DATA_PROVIDER_ABI,
        )

    def fetch(self, network: str) -> list[dict[str, Any]]:
        """Raw reserve rows of ``network``.

        Raises :class:`ConfigurationError` when the network lacks addresses
        and :class:`FetchError` for RPC failures.
        """

        cfg = self._network(network)
        try:
            provider = self._contract(cfg)
            tokens = provider.functions.getAllReservesTokens().call()
            rows: list[dict[str, Any]] = []
            for symbol, asset in tokens:
                conf = provider.functions.getReserveConfigurationData(asset).call()
                data = provider.functions.getReserveData(asset).call()
                rows.append(
                    {
                        "network": cfg.name,
                        "chain": cfg.chain,
                        "symbol": symbol,
                        "asset": asset,
                        "decimals": int(conf[0]),
                        "ltv": int(conf[1]),
                        "liquidation_threshold": int(conf[2]),
                        "usage_as_collateral": bool(conf[5]),
                        "is_active": bool(conf[8]),
                        "is_frozen": bool(conf[9]),
                        "total_atoken": int(data[2]),
                        "total_stable_debt": int(data[3]),
                        "total_variable_debt": int(data[4]),
                        "liquidity_rate": int(data[5]),
                    }
                )
        except Exception as exc:
            raise FetchError(f"{self.name}:{cfg.name}", exc) from exc
        logger.info("Read %d Aave reserves on %s", len(rows), cfg.name)
        return rows


__all__ = ["AaveNetwork", "AaveReserveSource", "PROTOCOL_DATA_PROVIDER_ABI"]
