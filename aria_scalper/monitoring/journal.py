"""SQLite-backed trade journal."""

from __future__ import annotations

import dataclasses
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from os import PathLike
from typing import Any

SCHEMA = """
CREATE TABLE IF NOT EXISTS trades (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_order_id TEXT UNIQUE NOT NULL,
    symbol TEXT NOT NULL,
    direction TEXT NOT NULL,
    strategy TEXT NOT NULL,
    market_regime TEXT NOT NULL,
    entry_time DATETIME NOT NULL,
    entry_price REAL NOT NULL,
    size REAL NOT NULL,
    stop_loss REAL NOT NULL,
    take_profit REAL NOT NULL,
    exit_time DATETIME,
    exit_price REAL,
    exit_reason TEXT,
    pnl_usd REAL,
    pnl_pct REAL,
    fees_paid REAL,
    ta_confidence INTEGER,
    rsi REAL,
    adx REAL,
    vwap_delta_pct REAL,
    ema_alignment TEXT,
    llm_model TEXT,
    llm_decision TEXT,
    llm_confidence INTEGER,
    llm_ta_score INTEGER,
    llm_sentiment_score INTEGER,
    llm_fundamental_score INTEGER,
    llm_composite INTEGER,
    llm_summary TEXT,
    llm_ta_analysis TEXT,
    llm_sentiment TEXT,
    llm_fundamental TEXT,
    llm_risks TEXT,
    llm_invalidation TEXT,
    llm_latency_ms INTEGER,
    fear_greed INTEGER,
    social_sentiment REAL,
    news_score REAL,
    funding_rate REAL,
    exchange_flow_btc REAL,
    top_news_titles TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_trades_symbol     ON trades(symbol);
CREATE INDEX IF NOT EXISTS idx_trades_entry_time ON trades(entry_time);
CREATE INDEX IF NOT EXISTS idx_trades_strategy   ON trades(strategy);
CREATE INDEX IF NOT EXISTS idx_trades_llm_dec    ON trades(llm_decision);

CREATE TABLE IF NOT EXISTS llm_decisions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ts DATETIME NOT NULL,
    symbol TEXT NOT NULL,
    strategy TEXT NOT NULL,
    regime TEXT NOT NULL,
    direction TEXT NOT NULL,
    ta_confidence INTEGER,
    llm_decision TEXT,
    llm_confidence INTEGER,
    composite_score INTEGER,
    summary TEXT,
    raw_json TEXT,
    latency_ms INTEGER,
    offline_fallback INTEGER DEFAULT 0
);
"""


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_sql(value: Any) -> Any:
    if isinstance(value, datetime):
        return _as_utc(value).isoformat(sep=" ", timespec="microseconds")
    return value


def _from_sql(text: str) -> datetime:
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    return _as_utc(datetime.fromisoformat(candidate))


def _u8(value: int | None) -> int | None:
    return None if value is None else int(value) & 0xFF


@dataclass
class TradeRecord:
    """A full trade row; field names match the journal's columns."""

    client_order_id: str
    symbol: str
    direction: str
    strategy: str
    market_regime: str
    entry_time: datetime
    entry_price: float
    size: float
    stop_loss: float
    take_profit: float
    exit_time: datetime | None = None
    exit_price: float | None = None
    exit_reason: str | None = None
    pnl_usd: float | None = None
    pnl_pct: float | None = None
    fees_paid: float | None = None

    ta_confidence: int | None = None
    rsi: float | None = None
    adx: float | None = None
    vwap_delta_pct: float | None = None
    ema_alignment: str | None = None

    llm_model: str | None = None
    llm_decision: str | None = None
    llm_confidence: int | None = None
    llm_ta_score: int | None = None
    llm_sentiment_score: int | None = None
    llm_fundamental_score: int | None = None
    llm_composite: int | None = None
    llm_summary: str | None = None
    llm_ta_analysis: str | None = None
    llm_sentiment: str | None = None
    llm_fundamental: str | None = None
    llm_risks: str | None = None
    llm_invalidation: str | None = None
    llm_latency_ms: int | None = None

    fear_greed: int | None = None
    social_sentiment: float | None = None
    news_score: float | None = None
    funding_rate: float | None = None
    top_news_titles: str | None = None


_TRADE_COLUMNS = tuple(f.name for f in dataclasses.fields(TradeRecord))


@dataclass(frozen=True)
class ClosedTrade:
    """Compact view of a closed trade, enough for the learning system."""

    symbol: str
    direction: str
    strategy: str
    regime: str
    entry_time: datetime
    exit_time: datetime
    pnl_usd: float
    pnl_pct: float
    ta_confidence: int | None = None
    llm_confidence: int | None = None

    def is_win(self) -> bool:
        return self.pnl_usd > 0.0


class TradeJournal:
    """Trade and LLM-decision log kept in an SQLite database."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()
        self._conn.executescript(SCHEMA)

    @classmethod
    def open_memory(cls) -> TradeJournal:
        return cls(":memory:")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> TradeJournal:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def insert_trade(self, record: TradeRecord) -> None:
        columns = ", ".join(_TRADE_COLUMNS)
        placeholders = ", ".join("?" for _ in _TRADE_COLUMNS)
        values = [_to_sql(getattr(record, name)) for name in _TRADE_COLUMNS]
        with self._lock, self._conn:
            self._conn.execute(
                f"INSERT INTO trades ({columns}) VALUES ({placeholders})", values
            )

    def close_trade(
        self,
        client_id: str,
        exit_time: datetime,
        exit_price: float,
        exit_reason: str,
        pnl_usd: float,
        pnl_pct: float,
        fees: float,
    ) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE trades SET exit_time=?, exit_price=?, exit_reason=?,"
                " pnl_usd=?, pnl_pct=?, fees_paid=? WHERE client_order_id=?",
                (
                    _to_sql(exit_time),
                    exit_price,
                    exit_reason,
                    pnl_usd,
                    pnl_pct,
                    fees,
                    client_id,
                ),
            )

    def log_llm_decision(
        self,
        symbol: str,
        strategy: str,
        regime: str,
        direction: str,
        ta_confidence: int,
        llm_decision: str,
        llm_confidence: int,
        composite_score: int,
        summary: str,
        raw_json: str,
        latency_ms: int,
        offline_fallback: bool,
    ) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO llm_decisions (ts, symbol, strategy, regime, direction,"
                " ta_confidence, llm_decision, llm_confidence, composite_score, summary,"
                " raw_json, latency_ms, offline_fallback)"
                " VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?)",
                (
                    _to_sql(datetime.now(timezone.utc)),
                    symbol,
                    strategy,
                    regime,
                    direction,
                    ta_confidence,
                    llm_decision,
                    llm_confidence,
                    composite_score,
                    summary,
                    raw_json,
                    int(latency_ms),
                    int(bool(offline_fallback)),
                ),
            )

    def recent_pnl(self) -> float:
        """Sum of realised PnL for trades closed today (UTC); 0.0 if none."""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT SUM(pnl_usd) FROM trades WHERE exit_time IS NOT NULL"
                    " AND date(exit_time) = date('now')"
                ).fetchone()
        except sqlite3.DatabaseError:
            return 0.0
        return row[0] if row and row[0] is not None else 0.0

    def trade_count(self) -> int:
        with self._lock:
            (count,) = self._conn.execute("SELECT COUNT(*) FROM trades").fetchone()
        return count

    def closed_trades(self, limit: int) -> list[ClosedTrade]:
        """Closed trades, newest exit first, at most `limit` of them."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT symbol, direction, strategy, market_regime, entry_time, exit_time,"
                " pnl_usd, pnl_pct, ta_confidence, llm_confidence"
                " FROM trades WHERE exit_time IS NOT NULL AND pnl_usd IS NOT NULL"
                " ORDER BY exit_time DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            ClosedTrade(
                symbol=symbol,
                direction=direction,
                strategy=strategy,
                regime=regime,
                entry_time=_from_sql(entry_time),
                exit_time=_from_sql(exit_time),
                pnl_usd=pnl_usd,
                pnl_pct=pnl_pct if pnl_pct is not None else 0.0,
                ta_confidence=_u8(ta_conf),
                llm_confidence=_u8(llm_conf),
            )
            for (
                symbol,
                direction,
                strategy,
                regime,
                entry_time,
                exit_time,
                pnl_usd,
                pnl_pct,
                ta_conf,
                llm_conf,
            ) in rows
        ]