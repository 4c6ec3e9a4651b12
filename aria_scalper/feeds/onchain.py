"""On-chain metrics: exchange flows, SOPR and whale transactions (optional API keys)."""

from __future__ import annotations

import asyncio
import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

_TIMEOUT = 5.0
_INFLOW_PATH = "/v1/metrics/transactions/transfers_volume_to_exchanges_sum"
_OUTFLOW_PATH = "/v1/metrics/transactions/transfers_volume_from_exchanges_sum"
_SOPR_PATH = "/v1/metrics/indicators/sopr_adjusted"
_U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class OnchainSnapshot:
    symbol: str
    exchange_inflow_24h: float | None = None
    exchange_outflow_24h: float | None = None
    whale_tx_1h: int | None = None
    sopr_1h: float | None = None


class OnchainAsset(enum.Enum):
    BTC = "BTC"
    ETH = "ETH"

    @classmethod
    def from_symbol(cls, symbol: str) -> OnchainAsset | None:
        upper = symbol.upper()
        if upper.startswith("BTC"):
            return cls.BTC
        if upper.startswith("ETH"):
            return cls.ETH
        return None

    def glassnode_asset(self) -> str:
        return self.value

    def whale_alert_currency(self) -> str:
        return self.value.lower()


def _metric_value(value: Any) -> float | None:
    number: float | None = None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and "_" not in value and value == value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
    if number is None or not math.isfinite(number):
        return None
    return number


def latest_metric_value(value: Any) -> float | None:
    """Most recent finite ``v`` in a time series of ``{"t": .., "v": ..}`` points."""
    if not isinstance(value, list):
        return None
    for item in reversed(value):
        if isinstance(item, Mapping) and "v" in item:
            number = _metric_value(item["v"])
            if number is not None:
                return number
    return None


def parse_whale_tx_count(value: Any) -> int | None:
    """Transaction count from a whale-alert body: ``count`` or the transactions list length."""
    if not isinstance(value, Mapping):
        return None
    count = value.get("count")
    if isinstance(count, int) and not isinstance(count, bool) and 0 <= count <= _U32_MAX:
        return count
    transactions = value.get("transactions")
    if isinstance(transactions, list) and len(transactions) <= _U32_MAX:
        return len(transactions)
    return None


class OnchainClient:
    """Fetches on-chain context; every metric is optional and missing on failure."""

    def __init__(
        self,
        glassnode_key: str | None = None,
        whale_alert_key: str | None = None,
        glassnode_base_url: str = "https://api.glassnode.com",
        whale_alert_base_url: str = "https://api.whale-alert.io",
    ) -> None:
        self._glassnode_key = glassnode_key
        self._whale_alert_key = whale_alert_key
        self._glassnode_base_url = glassnode_base_url
        self._whale_alert_base_url = whale_alert_base_url

    async def fetch(self, symbol: str) -> OnchainSnapshot:
        asset = OnchainAsset.from_symbol(symbol)
        if asset is None:
            return OnchainSnapshot(symbol=symbol)
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            inflow, outflow, sopr, whale_tx = await asyncio.gather(
                self._glassnode_metric(client, asset, _INFLOW_PATH, "24h"),
                self._glassnode_metric(client, asset, _OUTFLOW_PATH, "24h"),
                self._glassnode_metric(client, asset, _SOPR_PATH, "1h"),
                self._whale_alert_count(client, asset),
            )
        return OnchainSnapshot(
            symbol=symbol,
            exchange_inflow_24h=inflow,
            exchange_outflow_24h=outflow,
            whale_tx_1h=whale_tx,
            sopr_1h=sopr,
        )

    async def _glassnode_metric(
        self, client: httpx.AsyncClient, asset: OnchainAsset, path: str, interval: str
    ) -> float | None:
        key = self._glassnode_key
        if not key:
            return None
        url = f"{self._glassnode_base_url.rstrip('/')}{path}"
        try:
            resp = await client.get(
                url, params={"api_key": key, "a": asset.glassnode_asset(), "i": interval}
            )
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError):
            return None
        return latest_metric_value(body)

    async def _whale_alert_count(
        self, client: httpx.AsyncClient, asset: OnchainAsset
    ) -> int | None:
        key = self._whale_alert_key
        if not key:
            return None
        start = int((datetime.now(timezone.utc) - timedelta(hours=1)).timestamp())
        url = f"{self._whale_alert_base_url.rstrip('/')}/v1/transactions"
        try:
            resp = await client.get(
                url,
                params={
                    "api_key": key,
                    "start": str(start),
                    "min_value": "1000000",
                    "currency": asset.whale_alert_currency(),
                },
            )
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError):
            return None
        return parse_whale_tx_count(body)