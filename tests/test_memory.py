import math
from datetime import datetime, timedelta, timezone

import pytest

from aria_scalper.learning.memory import PerformanceMemory, StrategyStats
from aria_scalper.monitoring.journal import ClosedTrade

NOW = datetime(2024, 6, 1, 15, 30, tzinfo=timezone.utc)


def t(strat, sym, regime, pnl, conf, exit_time=NOW):
    return ClosedTrade(
        symbol=sym,
        direction="LONG",
        strategy=strat,
        regime=regime,
        entry_time=exit_time,
        exit_time=exit_time,
        pnl_usd=pnl,
        pnl_pct=pnl,
        ta_confidence=70,
        llm_confidence=conf,
    )


def test_computes_win_rate_and_streak():
    trades = [
        t("ema_ribbon", "BTCUSDT", "TRENDING", -1.0, 60),
        t("ema_ribbon", "BTCUSDT", "TRENDING", -2.0, 60),
        t("ema_ribbon", "BTCUSDT", "TRENDING", -3.0, 60),
        t("ema_ribbon", "BTCUSDT", "TRENDING", 4.0, 80),
        t("ema_ribbon", "BTCUSDT", "TRENDING", 5.0, 80),
    ]
    mem = PerformanceMemory.build(trades, now=NOW)
    s = mem.by_strategy["ema_ribbon"]
    assert s.trades == 5
    assert s.wins == 2
    assert s.losses == 3
    assert s.win_rate() == pytest.approx(0.4)
    assert s.recent_streak == -3
    assert s.last_5_outcomes == [True, True, False, False, False]


def test_averages_and_gross_totals():
    trades = [t("a", "BTCUSDT", "R", -2.0, 50), t("a", "BTCUSDT", "R", 6.0, 50)]
    s = PerformanceMemory.build(trades, now=NOW).overall
    assert s.net_pnl_usd == pytest.approx(4.0)
    assert s.gross_profit == pytest.approx(6.0)
    assert s.gross_loss == pytest.approx(2.0)
    assert s.avg_pnl_usd == pytest.approx(2.0)
    assert s.avg_pnl_pct == pytest.approx(2.0)
    assert s.profit_factor() == pytest.approx(3.0)


def test_profit_factor_edge_cases():
    assert StrategyStats().profit_factor() == 0.0
    assert math.isinf(StrategyStats(gross_profit=1.0).profit_factor())
    assert StrategyStats().win_rate() == 0.0


def test_last_outcomes_keep_only_five():
    trades = [t("a", "X", "R", 1.0, 50) for _ in range(7)]
    s = PerformanceMemory.build(trades, now=NOW).by_strategy["a"]
    assert s.last_5_outcomes == [True] * 5
    assert s.recent_streak == 5
    assert s.trades == 7


def test_buckets_by_axes():
    trades = [
        t("a", "BTCUSDT", "TRENDING", 1.0, 85),
        t("b", "ETHUSDT", "RANGING", -1.0, 100),
        t("a", "ETHUSDT", "RANGING", 1.0, 5),
    ]
    mem = PerformanceMemory.build(trades, now=NOW)
    assert mem.by_strategy_regime[("a", "TRENDING")].trades == 1
    assert mem.by_strategy_symbol[("a", "ETHUSDT")].trades == 1
    assert mem.by_symbol["ETHUSDT"].trades == 2
    assert mem.by_hour_utc[15].trades == 3
    assert mem.llm_calibration[8].trades == 1
    assert mem.llm_calibration[9].trades == 1
    assert mem.llm_calibration[0].trades == 1
    assert len(mem.llm_calibration) == 10


def test_recent_hour_window():
    trades = [
        t("a", "X", "R", -3.0, 50, exit_time=NOW - timedelta(minutes=10)),
        t("a", "X", "R", 7.0, 50, exit_time=NOW - timedelta(hours=3)),
    ]
    mem = PerformanceMemory.build(trades, now=NOW)
    assert mem.recent_hour_trades == 1
    assert mem.recent_hour_pnl == pytest.approx(-3.0)


def test_empty_build():
    mem = PerformanceMemory.build([], now=NOW)
    assert mem.overall.trades == 0
    assert mem.overall.recent_streak == 0
    assert mem.by_strategy == {}