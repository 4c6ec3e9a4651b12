"""Incremental candle-based indicators: ATR, ADX, Choppiness, Keltner, VWAP."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Protocol

from aria_scalper.indicators.averages import Ema


class CandleLike(Protocol):
    high: float
    low: float
    close: float
    volume: float


def typical_price(candle: CandleLike) -> float:
    """Typical price: mean of high, low and close."""
    return (candle.high + candle.low + candle.close) / 3.0


def true_range(candle: CandleLike, prev_close: float | None) -> float:
    """Wilder true range; the plain high-low range when there is no previous close."""
    hl = candle.high - candle.low
    if prev_close is None:
        return hl
    return max(hl, abs(candle.high - prev_close), abs(candle.low - prev_close))


class Atr:
    """Average True Range with Wilder smoothing."""

    def __init__(self, period: int) -> None:
        if period <= 0:
            raise ValueError("period must be > 0")
        self._period = period
        self._prev_close: float | None = None
        self._value: float | None = None
        self._seed_sum = 0.0
        self._seed_count = 0

    @property
    def value(self) -> float | None:
        return self._value

    def next(self, candle: CandleLike) -> float | None:
        tr = true_range(candle, self._prev_close)
        self._prev_close = candle.close
        if self._value is None:
            self._seed_sum += tr
            self._seed_count += 1
            if self._seed_count == self._period:
                self._value = self._seed_sum / self._period
            return self._value
        p = float(self._period)
        self._value = (self._value * (p - 1.0) + tr) / p
        return self._value


@dataclass(frozen=True)
class AdxValue:
    adx: float
    di_plus: float
    di_minus: float


class Adx:
    """Average Directional Index (Wilder) with DI+ and DI-."""

    def __init__(self, period: int) -> None:
        if period <= 1:
            raise ValueError("period must be > 1")
        self._period = period
        self._prev: CandleLike | None = None
        self._smooth_tr = 0.0
        self._smooth_plus_dm = 0.0
        self._smooth_minus_dm = 0.0
        self._dx_window: list[float] = []
        self._adx: float | None = None
        self._warmup = 0
        self._seeded = False

    def next(self, candle: CandleLike) -> AdxValue | None:
        prev = self._prev
        self._prev = candle
        if prev is None:
            return None

        up_move = candle.high - prev.high
        down_move = prev.low - candle.low
        plus_dm = up_move if up_move > down_move and up_move > 0.0 else 0.0
        minus_dm = down_move if down_move > up_move and down_move > 0.0 else 0.0
        tr = true_range(candle, prev.close)
        p = float(self._period)

        if not self._seeded:
            self._smooth_tr += tr
            self._smooth_plus_dm += plus_dm
            self._smooth_minus_dm += minus_dm
            self._warmup += 1
            if self._warmup != self._period:
                return None
            self._seeded = True
        else:
            self._smooth_tr = self._smooth_tr - self._smooth_tr / p + tr
            self._smooth_plus_dm = self._smooth_plus_dm - self._smooth_plus_dm / p + plus_dm
            self._smooth_minus_dm = (
                self._smooth_minus_dm - self._smooth_minus_dm / p + minus_dm
            )

        if self._smooth_tr == 0.0:
            return None
        di_plus = 100.0 * self._smooth_plus_dm / self._smooth_tr
        di_minus = 100.0 * self._smooth_minus_dm / self._smooth_tr
        di_sum = di_plus + di_minus
        dx = 0.0 if di_sum == 0.0 else 100.0 * abs(di_plus - di_minus) / di_sum

        if len(self._dx_window) < self._period:
            self._dx_window.append(dx)
            if len(self._dx_window) == self._period:
                self._adx = sum(self._dx_window) / p
        else:
            assert self._adx is not None
            self._adx = (self._adx * (p - 1.0) + dx) / p

        if self._adx is None:
            return None
        return AdxValue(adx=self._adx, di_plus=di_plus, di_minus=di_minus)


class Choppiness:
    """Choppiness Index: 100 * log10(sum TR / (max high - min low)) / log10(n)."""

    def __init__(self, period: int) -> None:
        if period <= 1:
            raise ValueError("period must be > 1")
        self._period = period
        self._ranges: deque[tuple[float, float]] = deque(maxlen=period)
        self._tr_hist: deque[float] = deque()
        self._tr_sum = 0.0
        self._prev_close: float | None = None

    def next(self, candle: CandleLike) -> float | None:
        tr = true_range(candle, self._prev_close)
        self._prev_close = candle.close

        self._tr_hist.append(tr)
        self._tr_sum += tr
        if len(self._tr_hist) > self._period:
            self._tr_sum -= self._tr_hist.popleft()

        self._ranges.append((candle.high, candle.low))
        if len(self._ranges) < self._period:
            return None

        hi = max(h for h, _ in self._ranges)
        lo = min(low for _, low in self._ranges)
        span = max(hi - lo, 1e-9)
        return 100.0 * math.log10(self._tr_sum / span) / math.log10(self._period)


@dataclass(frozen=True)
class KeltnerBand:
    lower: float
    mid: float
    upper: float


class Keltner:
    """Keltner Channel: EMA of typical price plus or minus k * ATR."""

    def __init__(self, period: int, k: float) -> None:
        self._ema = Ema(period)
        self._atr = Atr(period)
        self._k = k

    def next(self, candle: CandleLike) -> KeltnerBand | None:
        mid = self._ema.next(typical_price(candle))
        if mid is None:
            return None
        atr = self._atr.next(candle)
        if atr is None:
            return None
        return KeltnerBand(lower=mid - self._k * atr, mid=mid, upper=mid + self._k * atr)


class Vwap:
    """Session VWAP with per-candle fractional slope."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._cum_pv = 0.0
        self._cum_vol = 0.0
        self._prev_value: float | None = None
        self._slope: float | None = None

    @property
    def value(self) -> float | None:
        return self._prev_value

    @property
    def slope(self) -> float | None:
        """Fractional change of the VWAP per candle."""
        return self._slope

    def next(self, candle: CandleLike) -> float | None:
        self._cum_pv += typical_price(candle) * candle.volume
        self._cum_vol += candle.volume
        if self._cum_vol <= 0.0:
            return None
        v = self._cum_pv / self._cum_vol
        if self._prev_value is not None:
            self._slope = (v - self._prev_value) / max(self._prev_value, 1e-9)
        self._prev_value = v
        return v