import pytest

from aria_scalper.indicators.averages import Bollinger, Ema, Roc, Rsi


def test_ema_matches_pandas_style():
    assert Ema.compute([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx(4.0, abs=1e-9)


def test_ema_needs_period_values_to_seed():
    e = Ema(4)
    assert e.next(1.0) is None
    assert e.next(2.0) is None
    assert e.next(3.0) is None
    assert e.next(4.0) == pytest.approx(2.5)
    assert e.value == pytest.approx(2.5)
    assert e.period == 4


def test_ema_compute_short_series_is_none():
    assert Ema.compute([1.0, 2.0], 3) is None


def test_ema_rejects_zero_period():
    with pytest.raises(ValueError):
        Ema(0)


def test_rsi_full_up_is_100():
    series = [float(i) for i in range(1, 21)]
    assert Rsi.compute(series, 14) == pytest.approx(100.0, abs=1e-9)


def test_rsi_oscillating_in_range():
    s = [
        44.0, 44.34, 44.09, 44.15, 43.61, 44.33, 44.83, 45.10, 45.42, 45.84,
        46.08, 45.89, 46.03, 45.61, 46.28, 46.28,
    ]
    v = Rsi.compute(s, 14)
    assert 50.0 < v < 100.0


def test_rsi_full_down_is_zero():
    series = [float(i) for i in range(20, 0, -1)]
    assert Rsi.compute(series, 5) == pytest.approx(0.0, abs=1e-9)


def test_rsi_rejects_period_one():
    with pytest.raises(ValueError):
        Rsi(1)


def test_roc_percent_change():
    r = Roc(2)
    assert r.next(100.0) is None
    assert r.next(105.0) is None
    assert r.next(110.0) == pytest.approx(10.0)
    assert r.next(121.0) == pytest.approx(15.238095238, rel=1e-6)


def test_roc_zero_base_is_none():
    r = Roc(1)
    r.next(0.0)
    assert r.next(5.0) is None


def test_bb_constant_width_zero():
    bb = Bollinger(5, 2.0)
    results = [bb.next(100.0) for _ in range(10)]
    assert results[:4] == [None] * 4
    for b in results[4:]:
        assert b.width == pytest.approx(0.0, abs=1e-9)
        assert b.mid == pytest.approx(100.0, abs=1e-9)


def test_bb_symmetric_around_mean():
    bb = Bollinger(2, 1.0)
    bb.next(1.0)
    b = bb.next(3.0)
    assert b.mid == pytest.approx(2.0)
    assert b.lower == pytest.approx(1.0)
    assert b.upper == pytest.approx(3.0)
    assert b.width == pytest.approx(2.0)


def test_bb_rejects_period_one():
    with pytest.raises(ValueError):
        Bollinger(1, 2.0)