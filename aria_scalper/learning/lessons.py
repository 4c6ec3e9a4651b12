"""Lesson extraction: turn aggregate performance stats into actionable rules."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from aria_scalper.learning.memory import PerformanceMemory, StrategyStats


class LessonKind(enum.Enum):
    LOSE_STREAK = "LoseStreak"
    """Recent loss streak: pause the offending bucket for a cooldown."""
    STRATEGY_DERATE = "StrategyDerate"
    """Long-term win rate too low: raise the TA threshold and shrink size."""
    STRATEGY_BOOST = "StrategyBoost"
    """Long-term win rate good: relax the threshold slightly and boost size."""
    REGIME_BLACKLIST = "RegimeBlacklist"
    """Strategy/regime combination is hopeless: drop it."""
    LLM_CALIBRATION = "LlmCalibration"
    """LLM is over-confident: raise its minimum confidence."""
    SYMBOL_DERATE = "SymbolDerate"
    """Symbol losing money over many trades: skip it for a day."""
    DRAWDOWN_COOLDOWN = "DrawdownCooldown"
    """Sharp drawdown in the last hour: pause everything for a while."""


_BLOCKING_KINDS = frozenset(
    {
        LessonKind.LOSE_STREAK,
        LessonKind.REGIME_BLACKLIST,
        LessonKind.DRAWDOWN_COOLDOWN,
        LessonKind.SYMBOL_DERATE,
    }
)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class Lesson:
    """A rule derived from past performance; `None` buckets apply globally."""

    kind: LessonKind
    strategy: str | None = None
    regime: str | None = None
    symbol: str | None = None
    size_multiplier: float = 1.0
    ta_threshold_delta: int = 0
    llm_min_confidence_floor: int | None = None
    valid_until: datetime
    reason: str

    def applies(self, strategy: str, regime: str, symbol: str) -> bool:
        """True while the lesson is valid and every bucket it names matches."""
        if _as_utc(self.valid_until) < datetime.now(timezone.utc):
            return False
        if self.strategy is not None and self.strategy != strategy:
            return False
        if self.regime is not None and self.regime != regime:
            return False
        if self.symbol is not None and self.symbol != symbol:
            return False
        return True

    def is_block(self) -> bool:
        """True when the lesson bans the trade entirely."""
        return self.kind in _BLOCKING_KINDS

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "strategy": self.strategy,
            "regime": self.regime,
            "symbol": self.symbol,
            "size_multiplier": self.size_multiplier,
            "ta_threshold_delta": self.ta_threshold_delta,
            "llm_min_confidence_floor": self.llm_min_confidence_floor,
            "valid_until": _as_utc(self.valid_until).isoformat(),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class LessonConfig:
    """Thresholds for the lesson extractor."""

    min_trades_for_significance: int = 8
    lose_streak_trigger: int = -3
    lose_streak_cooldown_minutes: int = 30
    derate_win_rate: float = 0.35
    boost_win_rate: float = 0.65
    regime_blacklist_win_rate: float = 0.30
    regime_blacklist_min_trades: int = 12
    drawdown_cooldown_pct: float = -5.0
    drawdown_cooldown_minutes: int = 60
    llm_overconf_actual_wr: float = 0.40
    equity_for_drawdown: float = 5000.0


def _ratio(num: float, den: float) -> float:
    try:
        return num / den
    except ZeroDivisionError:
        if num == 0.0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)


def combine_stats(stats: Iterable[StrategyStats]) -> StrategyStats:
    """Sum counts and PnL totals of several buckets into one."""
    out = StrategyStats()
    for s in stats:
        out.trades += s.trades
        out.wins += s.wins
        out.losses += s.losses
        out.net_pnl_usd += s.net_pnl_usd
        out.gross_profit += s.gross_profit
        out.gross_loss += s.gross_loss
    return out


class LessonExtractor:
    """Derives lessons from a `PerformanceMemory` snapshot."""

    def __init__(self, cfg: LessonConfig | None = None) -> None:
        self.cfg = cfg if cfg is not None else LessonConfig()

    def extract(self, memory: PerformanceMemory) -> list[Lesson]:
        cfg = self.cfg
        now = datetime.now(timezone.utc)
        out: list[Lesson] = []

        dd_pct = _ratio(memory.recent_hour_pnl, cfg.equity_for_drawdown) * 100.0
        if dd_pct <= cfg.drawdown_cooldown_pct and memory.recent_hour_trades >= 2:
            out.append(
                Lesson(
                    kind=LessonKind.DRAWDOWN_COOLDOWN,
                    size_multiplier=0.0,
                    valid_until=now + timedelta(minutes=cfg.drawdown_cooldown_minutes),
                    reason=(
                        f"{dd_pct:.2f}% drawdown in last 60 min over "
                        f"{memory.recent_hour_trades} trades — cooling down"
                    ),
                )
            )

        for (strategy, symbol), s in memory.by_strategy_symbol.items():
            if s.recent_streak <= cfg.lose_streak_trigger:
                out.append(
                    Lesson(
                        kind=LessonKind.LOSE_STREAK,
                        strategy=strategy,
                        symbol=symbol,
                        size_multiplier=0.0,
                        valid_until=now + timedelta(minutes=cfg.lose_streak_cooldown_minutes),
                        reason=(
                            f"lose-streak {abs(s.recent_streak)} on {strategy}/{symbol}"
                            " — pausing 30m"
                        ),
                    )
                )

        for strategy, s in memory.by_strategy.items():
            if s.trades < cfg.min_trades_for_significance:
                continue
            wr = s.win_rate()
            if wr < cfg.derate_win_rate:
                out.append(
                    Lesson(
                        kind=LessonKind.STRATEGY_DERATE,
                        strategy=strategy,
                        size_multiplier=0.5,
                        ta_threshold_delta=10,
                        llm_min_confidence_floor=80,
                        valid_until=now + timedelta(hours=6),
                        reason=f"WR {wr * 100.0:.1f}% on {strategy} ({s.trades} trades) — derate",
                    )
                )
            elif wr >= cfg.boost_win_rate and s.profit_factor() >= 1.5:
                out.append(
                    Lesson(
                        kind=LessonKind.STRATEGY_BOOST,
                        strategy=strategy,
                        size_multiplier=1.2,
                        ta_threshold_delta=-5,
                        valid_until=now + timedelta(hours=6),
                        reason=(
                            f"WR {wr * 100.0:.1f}% PF {s.profit_factor():.2f} on {strategy}"
                            f" ({s.trades} trades) — boost"
                        ),
                    )
                )

        for (strategy, regime), s in memory.by_strategy_regime.items():
            if (
                s.trades >= cfg.regime_blacklist_min_trades
                and s.win_rate() < cfg.regime_blacklist_win_rate
            ):
                out.append(
                    Lesson(
                        kind=LessonKind.REGIME_BLACKLIST,
                        strategy=strategy,
                        regime=regime,
                        size_multiplier=0.0,
                        valid_until=now + timedelta(hours=12),
                        reason=(
                            f"WR {s.win_rate() * 100.0:.1f}% on {strategy} during {regime}"
                            f" ({s.trades} trades) — blacklist"
                        ),
                    )
                )

        high_conf = combine_stats(memory.llm_calibration[8:])
        if (
            high_conf.trades >= cfg.min_trades_for_significance
            and high_conf.win_rate() < cfg.llm_overconf_actual_wr
        ):
            out.append(
                Lesson(
                    kind=LessonKind.LLM_CALIBRATION,
                    size_multiplier=1.0,
                    llm_min_confidence_floor=90,
                    valid_until=now + timedelta(hours=12),
                    reason=(
                        f"high-conf LLM picks landing {high_conf.win_rate() * 100.0:.1f}% WR"
                        f" ({high_conf.trades} trades) — raising gate to 90"
                    ),
                )
            )

        for symbol, s in memory.by_symbol.items():
            if (
                s.trades >= cfg.min_trades_for_significance
                and s.net_pnl_usd < 0.0
                and s.win_rate() < cfg.derate_win_rate
            ):
                out.append(
                    Lesson(
                        kind=LessonKind.SYMBOL_DERATE,
                        symbol=symbol,
                        size_multiplier=0.0,
                        valid_until=now + timedelta(hours=24),
                        reason=(
                            f"{symbol} net {s.net_pnl_usd:+.2f} over {s.trades} trades,"
                            f" WR {s.win_rate() * 100.0:.1f}% — pause 24h"
                        ),
                    )
                )

        return out