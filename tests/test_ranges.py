from dataclasses import dataclass

import pytest

from aria_scalper.indicators.ranges import (
    Adx,
    Atr,
    Choppiness,
    Keltner,
    Vwap,
    true_range,
    typical_price,
)


@dataclass
class Candle:
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


def c(h, l, cl):
    return Candle(open=l, high=h, low=l, close=cl)


def flat(price, vol):
    return Candle(open=price, high=price, low=price, close=price, volume=vol)


def test_typical_price():
    assert typical_price(c(12.0, 6.0, 9.0)) == pytest.approx(9.0)


def test_true_range_uses_previous_close():
    assert true_range(c(10.0, 8.0, 9.0), None) == pytest.approx(2.0)
    assert true_range(c(10.0, 8.0, 9.0), 5.0) == pytest.approx(5.0)
    assert true_range(c(10.0, 8.0, 9.0), 13.0) == pytest.approx(5.0)


def test_atr_steady_range():
    a = Atr(3)
    assert a.next(c(10.0, 8.0, 9.0)) is None
    assert a.next(c(10.0, 8.0, 9.0)) is None
    v = a.next(c(10.0, 8.0, 9.0))
    assert v == pytest.approx(2.0, abs=1e-9)
    assert a.value == pytest.approx(2.0, abs=1e-9)


def test_atr_rejects_zero_period():
    with pytest.raises(ValueError):
        Atr(0)


def test_adx_steady_uptrend():
    adx = Adx(3)
    results = [adx.next(c(10.0 + i, 8.0 + i, 9.0 + i)) for i in range(8)]
    assert results[:6] == [None] * 6
    last = results[-1]
    assert last.adx == pytest.approx(100.0)
    assert last.di_plus == pytest.approx(50.0)
    assert last.di_minus == pytest.approx(0.0)


def test_adx_rejects_period_one():
    with pytest.raises(ValueError):
        Adx(1)


def test_choppiness_constant_range_is_100():
    ch = Choppiness(3)
    results = [ch.next(c(10.0, 8.0, 9.0)) for _ in range(5)]
    assert results[:2] == [None, None]
    for v in results[2:]:
        assert v == pytest.approx(100.0)


def test_keltner_constant_candles():
    k = Keltner(3, 2.0)
    results = [k.next(c(10.0, 8.0, 9.0)) for _ in range(4)]
    assert results[:2] == [None, None]
    band = results[3]
    assert band.mid == pytest.approx(9.0)
    assert band.lower == pytest.approx(5.0)
    assert band.upper == pytest.approx(13.0)


def test_vwap_equal_to_price_when_vol_constant():
    v = Vwap()
    v.next(flat(100.0, 10.0))
    v.next(flat(100.0, 10.0))
    assert v.next(flat(100.0, 10.0)) == pytest.approx(100.0, abs=1e-9)


def test_vwap_slope_and_reset():
    v = Vwap()
    assert v.next(flat(100.0, 10.0)) == pytest.approx(100.0)
    assert v.slope is None
    assert v.next(flat(110.0, 10.0)) == pytest.approx(105.0)
    assert v.slope == pytest.approx(0.05)
    v.reset()
    assert v.value is None
    assert v.slope is None


def test_vwap_zero_volume_is_none():
    v = Vwap()
    assert v.next(flat(100.0, 0.0)) is None