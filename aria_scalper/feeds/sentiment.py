"""Social sentiment from LunarCrush, with a neutral fallback when no key is set."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

_TIMEOUT = 5.0
_U64_LIMIT = 2**64
_UINT_RE = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class SentimentSnapshot:
    symbol: str
    social_volume: int = 0
    social_volume_change_pct: float = 0.0
    galaxy_score: float | None = None
    sentiment: float = 0.0
    """Range -1.0 .. 1.0."""
    top_keywords: list[str] = field(default_factory=list)


def lunarcrush_asset(symbol: str) -> str:
    """Strip the quote currency (BUSD, USDT or USD) from a trading pair."""
    for suffix in ("BUSD", "USDT", "USD"):
        if symbol.endswith(suffix):
            return symbol[: -len(suffix)]
    return symbol


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, Mapping) else None


def _json_f64(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and "_" not in value and value == value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _json_u64(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 <= value < _U64_LIMIT else None
    if isinstance(value, str) and _UINT_RE.fullmatch(value):
        n = int(value)
        return n if n < _U64_LIMIT else None
    return None


def _first_f64(data: Any, keys: Iterable[str]) -> float | None:
    for key in keys:
        number = _json_f64(_get(data, key))
        if number is not None:
            return number if math.isfinite(number) else None
    return None


def _first_u64(data: Any, keys: Iterable[str]) -> int | None:
    for key in keys:
        number = _json_u64(_get(data, key))
        if number is not None:
            return number
    return None


def _clamp(x: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return min(max(x, lo), hi)


def normalized_sentiment(data: Any) -> float:
    """Map whichever sentiment field is present onto [-1, 1]."""
    value = _first_f64(data, ("sentiment",))
    if value is not None:
        if 0.0 <= value <= 1.0:
            return value * 2.0 - 1.0
        if 0.0 <= value <= 100.0:
            return value / 50.0 - 1.0
        return _clamp(value)
    value = _first_f64(data, ("sentiment_score",))
    if value is not None:
        return _clamp(value / 50.0 - 1.0)
    rank = _first_f64(data, ("alt_rank_30d",))
    if rank is not None:
        return _clamp((100.0 - min(max(rank, 1.0), 200.0)) / 100.0)
    return 0.0


def _topic(item: Any) -> str | None:
    if not isinstance(item, Mapping):
        return None
    value = item["topic"] if "topic" in item else item.get("name")
    return value if isinstance(value, str) else None


def parse_lunarcrush_snapshot(symbol: str, resp: Any) -> SentimentSnapshot:
    """Build a snapshot from any of the LunarCrush coin payload variants."""
    data = resp["data"] if isinstance(resp, Mapping) and "data" in resp else resp
    social_volume = _first_u64(
        data, ("social_volume_24h", "social_volume", "interactions_24h", "posts_active")
    )
    change = _first_f64(
        data,
        (
            "social_volume_change_24h",
            "social_dominance_calc_24h_previous",
            "interactions_24h_percent_change",
        ),
    )
    ranks = _get(data, "topic_rank")
    topics = (_topic(item) for item in ranks) if isinstance(ranks, list) else iter(())
    keywords = [t for t in topics if t is not None][:5]
    return SentimentSnapshot(
        symbol=symbol,
        social_volume=social_volume if social_volume is not None else 0,
        social_volume_change_pct=change if change is not None else 0.0,
        galaxy_score=_first_f64(data, ("galaxy_score", "galaxy_score_previous")),
        sentiment=normalized_sentiment(data),
        top_keywords=keywords,
    )


class SentimentClient:
    """LunarCrush coin sentiment client."""

    def __init__(
        self, key: str | None = None, base_url: str = "https://lunarcrush.com/api4/public"
    ) -> None:
        self._key = key
        self._base_url = base_url

    async def fetch(self, symbol: str) -> SentimentSnapshot:
        """Fetch sentiment; without a key a neutral snapshot is returned."""
        if not self._key:
            return SentimentSnapshot(symbol=symbol)
        asset = lunarcrush_asset(symbol).lower()
        url = f"{self._base_url}/coins/{asset}/v1"
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            resp = await client.get(url, headers={"Authorization": f"Bearer {self._key}"})
            resp.raise_for_status()
            body = resp.json()
        return parse_lunarcrush_snapshot(symbol, body)