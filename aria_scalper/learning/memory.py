"""Aggregated performance stats derived from the trade journal."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from itertools import takewhile

from aria_scalper.monitoring.journal import ClosedTrade

_OUTCOME_WINDOW = 5
_CALIBRATION_BUCKETS = 10


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class StrategyStats:
    """Aggregate stats for one bucket of trades."""

    trades: int = 0
    wins: int = 0
    losses: int = 0
    net_pnl_usd: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    avg_pnl_usd: float = 0.0
    avg_pnl_pct: float = 0.0
    recent_streak: int = 0
    """Positive for a winning streak, negative for a losing one."""
    last_5_outcomes: list[bool] = field(default_factory=list)
    """Most recent outcomes, oldest first; True is a win."""

    def win_rate(self) -> float:
        if self.trades == 0:
            return 0.0
        return self.wins / self.trades

    def profit_factor(self) -> float:
        if self.gross_loss <= 0.0:
            return float("inf") if self.gross_profit > 0.0 else 0.0
        return self.gross_profit / self.gross_loss

    def _record(self, trade: ClosedTrade) -> None:
        self.trades += 1
        self.net_pnl_usd += trade.pnl_usd
        win = trade.is_win()
        if win:
            self.wins += 1
            self.gross_profit += trade.pnl_usd
        else:
            self.losses += 1
            self.gross_loss += abs(trade.pnl_usd)
        self.avg_pnl_pct += trade.pnl_pct
        self.last_5_outcomes.append(win)
        del self.last_5_outcomes[:-_OUTCOME_WINDOW]

    def _finalize(self) -> None:
        if self.trades > 0:
            self.avg_pnl_usd = self.net_pnl_usd / self.trades
            self.avg_pnl_pct /= self.trades
        recent = list(reversed(self.last_5_outcomes))
        if not recent:
            self.recent_streak = 0
            return
        latest = recent[0]
        run = sum(1 for _ in takewhile(lambda w: w == latest, recent))
        self.recent_streak = run if latest else -run


def _calibration_buckets() -> list[StrategyStats]:
    return [StrategyStats() for _ in range(_CALIBRATION_BUCKETS)]


@dataclass
class PerformanceMemory:
    """Recent performance organised along several axes."""

    overall: StrategyStats = field(default_factory=StrategyStats)
    by_strategy: dict[str, StrategyStats] = field(default_factory=dict)
    by_strategy_regime: dict[tuple[str, str], StrategyStats] = field(default_factory=dict)
    by_strategy_symbol: dict[tuple[str, str], StrategyStats] = field(default_factory=dict)
    by_symbol: dict[str, StrategyStats] = field(default_factory=dict)
    by_hour_utc: dict[int, StrategyStats] = field(default_factory=dict)
    llm_calibration: list[StrategyStats] = field(default_factory=_calibration_buckets)
    """Outcomes by reported LLM confidence: bucket i covers 10*i..10*i+9, the last 90-100."""
    recent_hour_pnl: float = 0.0
    recent_hour_trades: int = 0

    @classmethod
    def build(
        cls, trades: Sequence[ClosedTrade], now: datetime | None = None
    ) -> PerformanceMemory:
        """Aggregate trades given newest first, as the journal returns them."""
        mem = cls()
        one_hour_ago = _as_utc(now or datetime.now(timezone.utc)) - timedelta(hours=1)

        for t in reversed(trades):
            exit_time = _as_utc(t.exit_time)
            targets = [
                mem.overall,
                mem.by_strategy.setdefault(t.strategy, StrategyStats()),
                mem.by_strategy_regime.setdefault((t.strategy, t.regime), StrategyStats()),
                mem.by_strategy_symbol.setdefault((t.strategy, t.symbol), StrategyStats()),
                mem.by_symbol.setdefault(t.symbol, StrategyStats()),
                mem.by_hour_utc.setdefault(exit_time.hour, StrategyStats()),
            ]
            if t.llm_confidence is not None:
                bucket = min(t.llm_confidence // 10, _CALIBRATION_BUCKETS - 1)
                targets.append(mem.llm_calibration[bucket])
            for stats in targets:
                stats._record(t)

            if exit_time >= one_hour_ago:
                mem.recent_hour_pnl += t.pnl_usd
                mem.recent_hour_trades += 1

        for stats in mem._all_stats():
            stats._finalize()
        return mem

    def _all_stats(self) -> Iterator[StrategyStats]:
        yield self.overall
        yield from self.by_strategy.values()
        yield from self.by_strategy_regime.values()
        yield from self.by_strategy_symbol.values()
        yield from self.by_symbol.values()
        yield from self.by_hour_utc.values()
        yield from self.llm_calibration