"""Aggregated external context handed to the LLM alongside technical data."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass
from typing import Any

from aria_scalper.feeds.market import FearGreedSnapshot, FundingSnapshot
from aria_scalper.feeds.news import NewsSnapshot
from aria_scalper.feeds.onchain import OnchainSnapshot
from aria_scalper.feeds.options import OptionSkewSnapshot
from aria_scalper.feeds.sentiment import SentimentSnapshot


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class ExternalSnapshot:
    news: NewsSnapshot | None = None
    sentiment: SentimentSnapshot | None = None
    onchain: OnchainSnapshot | None = None
    funding: FundingSnapshot | None = None
    fear_greed: FearGreedSnapshot | None = None
    options: OptionSkewSnapshot | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready nested dictionary; enums become their string values."""
        return _plain(self)