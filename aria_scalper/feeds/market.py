"""Market-wide context feeds: Fear & Greed, funding rates and alt-data scoring."""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

_TIMEOUT = 5.0
_UINT_RE = re.compile(r"\+?[0-9]+")


def _parse_u8(text: Any) -> int | None:
    if not isinstance(text, str) or not _UINT_RE.fullmatch(text):
        return None
    n = int(text)
    return n if n <= 255 else None


def _parse_float(text: Any) -> float | None:
    if not isinstance(text, str) or text != text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


class FearGreedLabel(enum.Enum):
    EXTREME_FEAR = "EXTREME_FEAR"
    FEAR = "FEAR"
    NEUTRAL = "NEUTRAL"
    GREED = "GREED"
    EXTREME_GREED = "EXTREME_GREED"

    @classmethod
    def from_value(cls, v: int) -> FearGreedLabel:
        if v <= 24:
            return cls.EXTREME_FEAR
        if v <= 44:
            return cls.FEAR
        if v <= 54:
            return cls.NEUTRAL
        if v <= 74:
            return cls.GREED
        return cls.EXTREME_GREED


@dataclass(frozen=True)
class FearGreedSnapshot:
    value: int
    label: FearGreedLabel
    avg_7d: int | None = None


def parse_fear_greed(payload: Any) -> FearGreedSnapshot:
    """Build a snapshot from the index API's JSON body."""
    data = payload.get("data") if isinstance(payload, Mapping) else None
    if not isinstance(data, list):
        raise ValueError("missing data")
    if not data:
        raise ValueError("empty series")

    def raw_value(item: Any) -> Any:
        return item.get("value") if isinstance(item, Mapping) else None

    latest = raw_value(data[0])
    value = _parse_u8(latest if isinstance(latest, str) else "0") or 0
    avg: int | None = None
    if len(data) >= 7:
        parsed = (_parse_u8(raw_value(item)) for item in data[:7])
        avg = sum(n for n in parsed if n is not None) // 7
    return FearGreedSnapshot(value=value, label=FearGreedLabel.from_value(value), avg_7d=avg)


class FearGreedClient:
    """Client for the crypto Fear & Greed index."""

    def __init__(self, base_url: str = "https://api.alternative.me/fng/") -> None:
        self._base_url = base_url

    async def fetch(self) -> FearGreedSnapshot:
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            resp = await client.get(f"{self._base_url}?limit=7")
            payload = resp.json()
        return parse_fear_greed(payload)


@dataclass(frozen=True)
class FundingSnapshot:
    symbol: str
    rate: float
    predicted_rate: float | None = None
    open_interest: float | None = None


class FundingClient:
    """Futures funding rate and open interest client."""

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url

    async def fetch(self, symbol: str) -> FundingSnapshot:
        base = self._base_url.rstrip("/")
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            resp = await client.get(f"{base}/fapi/v1/premiumIndex", params={"symbol": symbol})
            premium = resp.json()
            raw_rate = premium.get("lastFundingRate") if isinstance(premium, Mapping) else None
            rate = _parse_float(raw_rate if isinstance(raw_rate, str) else "0")
            if rate is None:
                rate = 0.0
            open_interest = await self._open_interest(client, base, symbol)
        return FundingSnapshot(symbol=symbol, rate=rate, open_interest=open_interest)

    @staticmethod
    async def _open_interest(
        client: httpx.AsyncClient, base: str, symbol: str
    ) -> float | None:
        try:
            resp = await client.get(f"{base}/fapi/v1/openInterest", params={"symbol": symbol})
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError):
            return None
        if not isinstance(body, Mapping):
            return None
        return _parse_float(body.get("openInterest"))


class FundingArbSignal(enum.Enum):
    RECEIVE_FUNDING = "receive_funding"
    PAY_FUNDING_ONLY_WITH_STRONG_TREND = "pay_funding_only_with_strong_trend"
    NEUTRAL = "neutral"


def funding_edge_bps(snapshot: FundingSnapshot, holding_periods: float) -> float:
    """Expected funding carry in basis points over the holding periods."""
    periods = max(holding_periods, 0.0)
    rate = snapshot.predicted_rate if snapshot.predicted_rate is not None else snapshot.rate
    return rate * periods * 10_000.0


def classify_funding(rate: float, threshold_bps: float) -> FundingArbSignal:
    rate_bps = rate * 10_000.0
    if rate_bps >= threshold_bps:
        return FundingArbSignal.RECEIVE_FUNDING
    if rate_bps <= -threshold_bps:
        return FundingArbSignal.PAY_FUNDING_ONLY_WITH_STRONG_TREND
    return FundingArbSignal.NEUTRAL


@dataclass(frozen=True)
class AltDataInputs:
    news_sentiment: float = 0.0
    social_sentiment: float = 0.0
    onchain_flow: float = 0.0
    fear_greed: float = 0.0


def _clamp(x: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return min(max(x, lo), hi)


def alternative_data_score(inputs: AltDataInputs) -> float:
    """Weighted blend of alternative-data signals in [-1, 1]."""
    fg = _clamp((inputs.fear_greed - 50.0) / 50.0)
    return _clamp(
        _clamp(inputs.news_sentiment) * 0.30
        + _clamp(inputs.social_sentiment) * 0.25
        + _clamp(inputs.onchain_flow) * 0.25
        + fg * 0.20
    )