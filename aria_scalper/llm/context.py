"""Market Context Packet handed to the LLM: technical and external data."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from aria_scalper.feeds.snapshot import ExternalSnapshot


def _display(x: float | int) -> str:
    """Plain shortest decimal form of a number: no exponent, no trailing ``.0``."""
    if isinstance(x, int):
        return str(x)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x.is_integer():
        text = str(int(x))
        return "-0" if text == "0" and math.copysign(1.0, x) < 0 else text
    text = repr(x)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


def _label_text(label: Any) -> str:
    if isinstance(label, enum.Enum):
        return label.value if isinstance(label.value, str) else label.name
    return str(label)


def _lines(text: str) -> list[str]:
    parts = text.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


@dataclass(kw_only=True)
class MarketContext:
    """Snapshot of one symbol's market state at signal time."""

    symbol: str
    current_price: float
    pre_signal_direction: str
    ta_confidence: int
    regime: str
    strategy: str
    proposed_entry: float
    proposed_sl: float
    proposed_tp: float
    rsi: float | None = None
    adx: float | None = None
    di_plus: float | None = None
    di_minus: float | None = None
    atr: float | None = None
    vwap: float | None = None
    vwap_slope: float | None = None
    choppiness: float | None = None
    ema_8: float | None = None
    ema_21: float | None = None
    ema_50: float | None = None
    ema_200: float | None = None
    bb_upper: float | None = None
    bb_lower: float | None = None
    bb_mid: float | None = None
    spread_pct: float | None = None
    best_bid: float | None = None
    best_ask: float | None = None
    external: ExternalSnapshot = field(default_factory=ExternalSnapshot)
    historical_summary: str = ""
    """Performance summary from the learning system; empty when the journal is cold."""

    def build_prompt(self) -> str:
        """Render the human-readable Market Context Packet."""
        out = [
            "=== MARKET CONTEXT PACKET ===",
            "",
            "[ASSET INFO]",
            f"  Symbol        : {self.symbol}",
            f"  Current Price : {self.current_price:.2f}",
            "",
            "[TECHNICAL SNAPSHOT]",
        ]
        if self.ema_8 is not None and self.ema_21 is not None and self.ema_50 is not None:
            out.append(
                f"  EMA 8/21/50   : {self.ema_8:.2f} / {self.ema_21:.2f} / {self.ema_50:.2f}"
            )
        if self.ema_200 is not None:
            out.append(f"  EMA 200       : {self.ema_200:.2f}")
        if self.rsi is not None:
            out.append(f"  RSI (14)      : {self.rsi:.2f}")
        if self.bb_lower is not None and self.bb_mid is not None and self.bb_upper is not None:
            out.append(
                f"  BB (20,2)     : L:{self.bb_lower:.2f} M:{self.bb_mid:.2f} U:{self.bb_upper:.2f}"
            )
        if self.vwap is not None:
            out.append(f"  VWAP          : {self.vwap:.2f}")
        if self.vwap_slope is not None:
            out.append(f"  VWAP slope    : {self.vwap_slope:.6f}")
        if self.atr is not None:
            out.append(f"  ATR (14)      : {self.atr:.2f}")
        if self.adx is not None and self.di_plus is not None and self.di_minus is not None:
            out.append(
                f"  ADX / DI±     : {self.adx:.2f} / {self.di_plus:.2f} / {self.di_minus:.2f}"
            )
        if self.choppiness is not None:
            out.append(f"  Choppiness    : {self.choppiness:.2f}")
        out += [
            f"  Regime        : {self.regime}",
            f"  Strategy      : {self.strategy}",
            f"  Pre-signal    : {self.pre_signal_direction}",
            f"  TA Confidence : {self.ta_confidence}/100",
            f"  Proposed Entry: {self.proposed_entry:.2f}",
            f"  Proposed SL   : {self.proposed_sl:.2f}",
            f"  Proposed TP   : {self.proposed_tp:.2f}",
            "",
            "[ORDER BOOK]",
        ]
        if self.best_bid is not None and self.best_ask is not None:
            out.append(f"  Best bid/ask  : {self.best_bid:.2f} / {self.best_ask:.2f}")
        if self.spread_pct is not None:
            out.append(f"  Spread %      : {self.spread_pct:.4f}")

        ext = self.external
        fg = ext.fear_greed
        if fg is not None:
            out += ["", "[FEAR & GREED]"]
            out.append(f"  Value         : {fg.value} ({_label_text(fg.label)})")
            if fg.avg_7d is not None:
                out.append(f"  7-day average : {fg.avg_7d}")

        funding = ext.funding
        if funding is not None:
            out += ["", "[FUNDING]", f"  Rate          : {_display(funding.rate)}"]
            if funding.open_interest is not None:
                out.append(f"  Open Interest : {_display(funding.open_interest)}")

        opt = ext.options
        if opt is not None:
            out += [
                "",
                "[OPTIONS SKEW]",
                f"  25d call IV   : {opt.call_25d_iv * 100.0:.2f}%",
                f"  25d put IV    : {opt.put_25d_iv * 100.0:.2f}%",
                f"  ATM IV        : {opt.atm_iv * 100.0:.2f}%",
                f"  Skew bps      : {opt.skew_bps():+.1f}",
                f"  Sentiment     : {opt.sentiment_score():+.2f}",
            ]

        chain = ext.onchain
        if chain is not None:
            out += ["", "[ON-CHAIN]"]
            if chain.exchange_inflow_24h is not None:
                out.append(f"  Exch inflow 24h : {_display(chain.exchange_inflow_24h)}")
            if chain.exchange_outflow_24h is not None:
                out.append(f"  Exch outflow 24h: {_display(chain.exchange_outflow_24h)}")
            if chain.whale_tx_1h is not None:
                out.append(f"  Whale tx 1h     : {chain.whale_tx_1h}")
            if chain.sopr_1h is not None:
                out.append(f"  SOPR 1h         : {_display(chain.sopr_1h)}")

        snt = ext.sentiment
        if snt is not None:
            out += [
                "",
                "[SOCIAL SENTIMENT]",
                f"  Volume 24h    : {snt.social_volume} (+{snt.social_volume_change_pct:.1f}%)",
                f"  Sentiment     : {snt.sentiment:.2f}",
            ]
            if snt.galaxy_score is not None:
                out.append(f"  Galaxy score  : {snt.galaxy_score:.2f}")

        if self.historical_summary:
            out += ["", "[HISTORICAL PERFORMANCE]"]
            out += [f"  {line}" for line in _lines(self.historical_summary)]

        news = ext.news
        if news is not None:
            out += ["", "[NEWS HEADLINES]"]
            out += [
                f"  [{item.impact.value}] {item.title} ({item.source})"
                for item in news.items[:8]
            ]
            out.append(f"  Net score     : {news.net_score:+.2f}")

        return "\n".join(out) + "\n"