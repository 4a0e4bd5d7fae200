"""CSV-backed pool snapshot source."""

from __future__ import annotations

import math
from datetime import UTC, datetime

import pandas as pd

from ..core import Pool
from ..errors import FetchError


def _opt_float(value: object) -> float | None:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return None if math.isnan(out) else out


class CSVSource:
    """Load pools from a CSV whose columns are :class:`Pool` field names.

    Used as an offline strategy when the live directories are unreachable;
    files written by ``PoolRepository.to_dataframe().to_csv(...)`` round-trip.
    """

    name = "csv-snapshot"

    def __init__(self, path: str) -> None:
        self.path = path

    def fetch(self) -> list[Pool]:
        try:
            df = pd.read_csv(self.path)
        except (OSError, ValueError) as exc:
            raise FetchError(self.name, exc) from exc
        required = {"pool_id", "chain", "project", "symbol", "tvl_usd", "apy"}
        missing = required.difference(df.columns)
        if missing:
            raise FetchError(self.name, f"CSV missing columns: {sorted(missing)}")
        pools: list[Pool] = []
        now = datetime.now(tz=UTC).timestamp()
        for _, r in df.iterrows():
            rewards = r.get("reward_tokens", "")
            pools.append(
                Pool(
                    pool_id=str(r["pool_id"]),
                    chain=str(r["chain"]),
                    project=str(r["project"]),
                    symbol=str(r["symbol"]),
                    tvl_usd=float(r["tvl_usd"]),
                    apy=float(r["apy"]),
                    apy_base=_opt_float(r.get("apy_base")) or 0.0,
                    apy_reward=_opt_float(r.get("apy_reward")) or 0.0,
                    reward_tokens=tuple(
                        t for t in str(rewards).split(",") if t and t != "nan"
                    ),
                    il_7d=_opt_float(r.get("il_7d")),
                    source=self.name,
                    timestamp=_opt_float(r.get("timestamp")) or now,
                )
            )
        return pools


__all__ = ["CSVSource"]
