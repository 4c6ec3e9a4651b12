"""Order-flow microstructure signals: OFI, VPIN and a toxicity gate."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass


class Ofi:
    """Rolling order-flow imbalance computed from top-of-book quantities."""

    def __init__(self, window: int) -> None:
        self._window = max(window, 1)
        self._prev: tuple[float, float] | None = None
        self._rolling: deque[float] = deque(maxlen=self._window)

    def update(self, bid_qty: float, ask_qty: float) -> float | None:
        """Feed a new best bid/ask quantity pair; returns the rolling sum once full."""
        prev = self._prev
        self._prev = (bid_qty, ask_qty)
        if prev is None:
            return None
        prev_bid, prev_ask = prev
        self._rolling.append((bid_qty - prev_bid) - (ask_qty - prev_ask))
        if len(self._rolling) < self._window:
            return None
        return sum(self._rolling)

    def z_score(self) -> float | None:
        """Mean over population standard deviation of the rolling values."""
        if len(self._rolling) < 2:
            return None
        n = float(len(self._rolling))
        mean = sum(self._rolling) / n
        var = sum((x - mean) ** 2 for x in self._rolling) / n
        sd = math.sqrt(var)
        if sd <= 0.0:
            return None
        return mean / sd


@dataclass(frozen=True)
class Toxicity:
    """Thresholds above which order flow is considered toxic."""

    ofi_z_abs_limit: float = 3.0
    vpin_limit: float = 0.75
    spread_pct_limit: float = 0.03

    def is_toxic(
        self,
        ofi_z: float | None,
        vpin: float | None,
        spread_pct: float | None,
    ) -> bool:
        return (
            (ofi_z is not None and abs(ofi_z) > self.ofi_z_abs_limit)
            or (vpin is not None and vpin > self.vpin_limit)
            or (spread_pct is not None and spread_pct > self.spread_pct_limit)
        )


class Vpin:
    """Volume-synchronised probability of informed trading over volume buckets."""

    def __init__(self, bucket_size: float, window: int) -> None:
        self._bucket_size = max(bucket_size, 1e-9)
        self._window = max(window, 1)
        self._current_buy = 0.0
        self._current_sell = 0.0
        self._buckets: deque[float] = deque(maxlen=self._window)

    def update(self, buy_volume: float, sell_volume: float) -> float | None:
        """Add traded volume; closes a bucket once it reaches the bucket size."""
        self._current_buy += max(buy_volume, 0.0)
        self._current_sell += max(sell_volume, 0.0)
        total = self._current_buy + self._current_sell
        if total < self._bucket_size:
            return self.value()
        self._buckets.append(abs(self._current_buy - self._current_sell) / max(total, 1e-9))
        self._current_buy = 0.0
        self._current_sell = 0.0
        return self.value()

    def value(self) -> float | None:
        """Mean bucket imbalance once the window is full."""
        if len(self._buckets) < self._window:
            return None
        return sum(self._buckets) / len(self._buckets)