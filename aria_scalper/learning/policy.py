"""Runtime learning policy consulted before every trading decision."""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from aria_scalper.learning.lessons import Lesson
from aria_scalper.learning.memory import PerformanceMemory, StrategyStats


@dataclass
class PolicyVerdict:
    allowed: bool = True
    size_multiplier: float = 1.0
    ta_threshold_delta: int = 0
    llm_min_confidence_floor: int | None = None
    matched_lessons: list[str] = field(default_factory=list)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _fmt_outcomes(stats: StrategyStats) -> str:
    return "".join("W" if win else "L" for win in stats.last_5_outcomes)


class LearningPolicy:
    """Thread-safe holder of the latest performance memory and lessons."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._memory = PerformanceMemory()
        self._lessons: list[Lesson] = []

    def update(self, memory: PerformanceMemory, lessons: Iterable[Lesson]) -> None:
        with self._lock:
            self._memory = memory
            self._lessons = list(lessons)

    def evaluate(self, strategy: str, regime: str, symbol: str) -> PolicyVerdict:
        """Combine every lesson that applies into one verdict."""
        verdict = PolicyVerdict()
        with self._lock:
            lessons = list(self._lessons)
        for lesson in lessons:
            if not lesson.applies(strategy, regime, symbol):
                continue
            verdict.matched_lessons.append(lesson.reason)
            if lesson.is_block():
                verdict.allowed = False
                verdict.size_multiplier = 0.0
            else:
                verdict.size_multiplier *= lesson.size_multiplier
                verdict.ta_threshold_delta += lesson.ta_threshold_delta
                floor = lesson.llm_min_confidence_floor
                if floor is not None:
                    current = verdict.llm_min_confidence_floor or 0
                    verdict.llm_min_confidence_floor = max(current, floor)
        return verdict

    def active_lessons(self) -> list[Lesson]:
        """Lessons that have not yet expired."""
        now = datetime.now(timezone.utc)
        with self._lock:
            return [x for x in self._lessons if _as_utc(x.valid_until) > now]

    def historical_summary(self, strategy: str, regime: str, symbol: str) -> str:
        """Compact human-readable performance summary for the LLM prompt."""
        with self._lock:
            memory = self._memory
            lessons = list(self._lessons)
        lines: list[str] = []
        overall = memory.overall
        if overall.trades:
            lines.append(
                f"Overall: {overall.trades} trades · WR {overall.win_rate() * 100.0:.1f}%"
                f" · PF {overall.profit_factor():.2f} · net ${overall.net_pnl_usd:+.2f}\n"
            )
        s = memory.by_strategy.get(strategy)
        if s is not None:
            lines.append(
                f"Strategy {strategy}: {s.trades} trades · WR {s.win_rate() * 100.0:.1f}%"
                f" · PF {s.profit_factor():.2f} · streak {s.recent_streak}"
                f" · last5 {_fmt_outcomes(s)}\n"
            )
        s = memory.by_strategy_regime.get((strategy, regime))
        if s is not None:
            lines.append(
                f"Regime {regime} for {strategy}: {s.trades} trades"
                f" · WR {s.win_rate() * 100.0:.1f}%\n"
            )
        s = memory.by_strategy_symbol.get((strategy, symbol))
        if s is not None:
            lines.append(
                f"{symbol} on {strategy}: {s.trades} trades · WR {s.win_rate() * 100.0:.1f}%"
                f" · streak {s.recent_streak}\n"
            )
        now = datetime.now(timezone.utc)
        active = [
            f"- {x.kind.value}: {x.reason}"
            for x in lessons
            if _as_utc(x.valid_until) > now and x.applies(strategy, regime, symbol)
        ]
        if active:
            lines.append("Active lessons:\n" + "\n".join(active) + "\n")
        if not lines:
            return "No prior trades — running on TA + LLM only.\n"
        return "".join(lines)

    def strategy_stats(self) -> dict[str, StrategyStats]:
        """Copy of the per-strategy stats."""
        with self._lock:
            return copy.deepcopy(self._memory.by_strategy)