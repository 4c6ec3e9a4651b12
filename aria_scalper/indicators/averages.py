"""Incremental moving averages and oscillators over a single price series."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass


class Ema:
    """Exponential moving average seeded with the SMA of the first `period` values."""

    def __init__(self, period: int) -> None:
        if period <= 0:
            raise ValueError("period must be > 0")
        self._period = period
        self._alpha = 2.0 / (period + 1.0)
        self._value: float | None = None
        self._seed_sum = 0.0
        self._seed_count = 0

    @property
    def period(self) -> int:
        return self._period

    @property
    def value(self) -> float | None:
        return self._value

    def next(self, x: float) -> float | None:
        """Feed the next observation; returns the EMA once seeded."""
        if self._value is None:
            self._seed_sum += x
            self._seed_count += 1
            if self._seed_count == self._period:
                self._value = self._seed_sum / self._period
            return self._value
        self._value = self._alpha * x + (1.0 - self._alpha) * self._value
        return self._value

    @staticmethod
    def compute(values: Iterable[float], period: int) -> float | None:
        """EMA of a whole series, or None if it never seeded."""
        ema = Ema(period)
        last = None
        for v in values:
            last = ema.next(v)
        return last


class Rsi:
    """Relative Strength Index with Wilder smoothing."""

    def __init__(self, period: int) -> None:
        if period <= 1:
            raise ValueError("period must be > 1")
        self._period = period
        self._prev_close: float | None = None
        self._avg_gain: float | None = None
        self._avg_loss: float | None = None
        self._seed_gains = 0.0
        self._seed_losses = 0.0
        self._seed_count = 0

    def next(self, close: float) -> float | None:
        prev = self._prev_close
        self._prev_close = close
        if prev is None:
            return None
        change = close - prev
        gain = max(change, 0.0)
        loss = max(-change, 0.0)

        if self._avg_gain is None or self._avg_loss is None:
            self._seed_gains += gain
            self._seed_losses += loss
            self._seed_count += 1
            if self._seed_count == self._period:
                self._avg_gain = self._seed_gains / self._period
                self._avg_loss = self._seed_losses / self._period
                return self._current()
            return None
        p = float(self._period)
        self._avg_gain = (self._avg_gain * (p - 1.0) + gain) / p
        self._avg_loss = (self._avg_loss * (p - 1.0) + loss) / p
        return self._current()

    def _current(self) -> float:
        assert self._avg_gain is not None and self._avg_loss is not None
        if self._avg_loss == 0.0:
            return 100.0
        rs = self._avg_gain / self._avg_loss
        return 100.0 - 100.0 / (1.0 + rs)

    @staticmethod
    def compute(values: Iterable[float], period: int) -> float | None:
        """Last RSI value produced over a whole series."""
        rsi = Rsi(period)
        last = None
        for v in values:
            x = rsi.next(v)
            if x is not None:
                last = x
        return last


class Roc:
    """Rate of change: percent change versus `period` observations ago."""

    def __init__(self, period: int) -> None:
        if period <= 0:
            raise ValueError("period must be > 0")
        self._period = period
        self._buf: deque[float] = deque(maxlen=period + 1)

    def next(self, x: float) -> float | None:
        self._buf.append(x)
        if len(self._buf) <= self._period:
            return None
        oldest = self._buf[0]
        if oldest == 0.0:
            return None
        return (x - oldest) / oldest * 100.0


@dataclass(frozen=True)
class BollingerBand:
    lower: float
    mid: float
    upper: float
    width: float


class Bollinger:
    """Bollinger Bands: SMA plus or minus k population standard deviations."""

    def __init__(self, period: int, k: float) -> None:
        if period <= 1:
            raise ValueError("period must be > 1")
        self._period = period
        self._k = k
        self._buf: deque[float] = deque()
        self._sum = 0.0
        self._sum_sq = 0.0

    def next(self, x: float) -> BollingerBand | None:
        self._buf.append(x)
        self._sum += x
        self._sum_sq += x * x
        if len(self._buf) > self._period:
            old = self._buf.popleft()
            self._sum -= old
            self._sum_sq -= old * old
        if len(self._buf) < self._period:
            return None
        n = float(self._period)
        mean = self._sum / n
        var = self._sum_sq / n - mean * mean
        sd = max(var, 0.0) ** 0.5
        lower = mean - self._k * sd
        upper = mean + self._k * sd
        return BollingerBand(lower=lower, mid=mean, upper=upper, width=upper - lower)