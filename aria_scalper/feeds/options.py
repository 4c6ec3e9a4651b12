"""Options implied-volatility skew from exchange book summaries."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

_TIMEOUT = 5.0


class OptionUnderlying(enum.Enum):
    BTC = "BTC"
    ETH = "ETH"

    @classmethod
    def from_symbol(cls, symbol: str) -> OptionUnderlying | None:
        upper = symbol.upper()
        if upper.startswith("BTC"):
            return cls.BTC
        if upper.startswith("ETH"):
            return cls.ETH
        return None

    def deribit_currency(self) -> str:
        return self.value


@dataclass(frozen=True)
class OptionSkewSnapshot:
    underlying: OptionUnderlying
    call_25d_iv: float
    put_25d_iv: float
    atm_iv: float
    sample_size: int

    def skew_bps(self) -> float:
        """Call minus put IV, relative to ATM IV, in basis points."""
        if self.atm_iv <= 0.0:
            return 0.0
        return (self.call_25d_iv - self.put_25d_iv) / self.atm_iv * 10_000.0

    def sentiment_score(self) -> float:
        return min(max(self.skew_bps() / 500.0, -1.0), 1.0)


def derive_skew_snapshot(
    underlying: OptionUnderlying, rows: Iterable[Mapping[str, Any]]
) -> OptionSkewSnapshot | None:
    """Estimate 25-delta call/put and ATM IV from book summary rows.

    Each row carries an ``instrument_name`` and a ``mark_iv`` in percent.
    Returns None unless there are at least three calls and three puts.
    """
    calls: list[float] = []
    puts: list[float] = []
    for row in rows:
        iv = row.get("mark_iv")
        if isinstance(iv, bool) or not isinstance(iv, (int, float)):
            continue
        if not math.isfinite(iv) or iv <= 0.0:
            continue
        name = str(row.get("instrument_name", ""))
        if name.endswith("-C"):
            calls.append(iv / 100.0)
        elif name.endswith("-P"):
            puts.append(iv / 100.0)
    if len(calls) < 3 or len(puts) < 3:
        return None
    calls.sort()
    puts.sort()
    combined = sorted(calls + puts)
    return OptionSkewSnapshot(
        underlying=underlying,
        call_25d_iv=calls[len(calls) * 3 // 4],
        put_25d_iv=puts[len(puts) * 3 // 4],
        atm_iv=combined[len(combined) // 2],
        sample_size=len(calls) + len(puts),
    )


class DeribitOptionsClient:
    """Fetches option book summaries and derives an IV skew snapshot."""

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url

    async def fetch(self, symbol: str) -> OptionSkewSnapshot | None:
        underlying = OptionUnderlying.from_symbol(symbol)
        if underlying is None:
            return None
        url = f"{self._base_url.rstrip('/')}/api/v2/public/get_book_summary_by_currency"
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            resp = await client.get(
                url, params={"currency": underlying.deribit_currency(), "kind": "option"}
            )
            payload = resp.json()
        result = payload.get("result") if isinstance(payload, Mapping) else None
        if not isinstance(result, list):
            raise ValueError("book summary response has no result list")
        return derive_skew_snapshot(underlying, (r for r in result if isinstance(r, Mapping)))