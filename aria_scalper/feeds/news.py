"""News headlines from CryptoPanic and RSS/Atom feeds, scored by keyword heuristics."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx
from defusedxml import ElementTree

_TIMEOUT = 6.0
_USER_AGENT = "ARIA-Scalper/0.1"
_MAX_ITEMS = 20
_PER_SOURCE_LIMIT = 10

_POSITIVE_KEYWORDS = (
    "etf",
    "approval",
    "inflow",
    "accumulation",
    "bullish",
    "surge",
    "rally",
    "breakout",
    "all-time high",
    "ath",
    "institution",
    "upgrade",
    "adoption",
)
# "exploit" is listed twice on purpose: it weighs double.
_NEGATIVE_KEYWORDS = (
    "hack",
    "exploit",
    "lawsuit",
    "ban",
    "outflow",
    "selloff",
    "crash",
    "dump",
    "bearish",
    "sec",
    "regulator",
    "investigation",
    "fud",
    "liquidation",
    "exploit",
    "rug",
)


class Impact(enum.Enum):
    LOW = "LOW"
    MEDIUM = "MED"
    HIGH = "HIGH"


@dataclass(frozen=True)
class NewsItem:
    source: str
    title: str
    url: str
    published_at: str | None
    score: float
    """-1.0 negative, 0.0 neutral, +1.0 positive (keyword heuristic)."""
    impact: Impact


@dataclass(frozen=True)
class NewsSnapshot:
    items: list[NewsItem] = field(default_factory=list)
    net_score: float = 0.0


def _clamp(x: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return min(max(x, lo), hi)


def keyword_sentiment(title: str) -> float:
    """Score a headline in [-1, 1] by counting bullish and bearish keywords."""
    text = title.lower()
    score = sum(1.0 for k in _POSITIVE_KEYWORDS if k in text)
    score -= sum(1.0 for k in _NEGATIVE_KEYWORDS if k in text)
    return _clamp(score / 3.0)


def classify_impact(score: float) -> Impact:
    magnitude = abs(score)
    if magnitude >= 0.66:
        return Impact.HIGH
    if magnitude >= 0.33:
        return Impact.MEDIUM
    return Impact.LOW


def _json_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def cryptopanic_vote_score(votes: Any) -> float:
    """Directional vote balance scaled to [-0.5, 0.5]; other vote kinds are ignored."""
    if not isinstance(votes, Mapping):
        return 0.0

    def total(keys: Iterable[str]) -> float:
        numbers = (_json_number(votes.get(k)) for k in keys)
        return sum(n for n in numbers if n is not None)

    positive = total(("positive", "bullish"))
    negative = total(("negative", "bearish"))
    count = positive + negative
    if count > 0.0:
        return _clamp((positive - negative) / count) * 0.5
    return 0.0


def _parse_cryptopanic_item(post: Any) -> NewsItem | None:
    if not isinstance(post, Mapping):
        return None
    title = post.get("title")
    if not isinstance(title, str) or not title:
        return None
    url = post.get("url")
    published = post.get("published_at")
    score = keyword_sentiment(title)
    if "votes" in post:
        score = _clamp(score + cryptopanic_vote_score(post["votes"]))
    return NewsItem(
        source="cryptopanic",
        title=title,
        url=url if isinstance(url, str) else "",
        published_at=published if isinstance(published, str) else None,
        score=score,
        impact=classify_impact(score),
    )


def parse_cryptopanic_items(body: Any, limit: int) -> list[NewsItem]:
    """Turn a CryptoPanic posts response into scored items (first `limit` posts)."""
    results = body.get("results") if isinstance(body, Mapping) else None
    if not isinstance(results, list):
        return []
    parsed = (_parse_cryptopanic_item(post) for post in results[:limit])
    return [item for item in parsed if item is not None]


def _local(tag: Any) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _child(elem: Any, name: str) -> Any:
    if elem is None:
        return None
    return next((c for c in elem if _local(c.tag) == name), None)


def _text(elem: Any) -> str | None:
    if elem is None:
        return None
    return "".join(elem.itertext()).strip()


def _parse_date(text: str) -> str | None:
    dt: datetime | None
    try:
        dt = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        dt = None
    if dt is None:
        candidate = text.strip()
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _entry_link(entry: Any) -> str:
    link = _child(entry, "link")
    if link is None:
        return ""
    href = link.get("href")
    if href is not None:
        return href
    return _text(link) or ""


def _entry_published(entry: Any) -> str | None:
    for name in ("pubDate", "published", "date"):
        text = _text(_child(entry, name))
        if text:
            return _parse_date(text)
    return None


def parse_rss(content: bytes | str, fallback_source: str) -> list[NewsItem]:
    """Parse an RSS 2.0, RSS 1.0 or Atom document into scored items (first ten entries)."""
    try:
        root = ElementTree.fromstring(content)
    except ElementTree.ParseError as exc:
        raise ValueError(f"unparseable feed: {exc}") from exc

    kind = _local(root.tag)
    if kind == "rss":
        container = _child(root, "channel")
        if container is None:
            raise ValueError("rss document has no channel")
        entries = [c for c in container if _local(c.tag) == "item"]
    elif kind == "feed":
        container = root
        entries = [c for c in root if _local(c.tag) == "entry"]
    elif kind == "RDF":
        container = _child(root, "channel")
        entries = [c for c in root if _local(c.tag) == "item"]
    else:
        raise ValueError(f"unsupported feed document: {kind!r}")

    feed_title = _text(_child(container, "title"))
    source = feed_title if feed_title is not None else fallback_source

    items = []
    for entry in entries[:_PER_SOURCE_LIMIT]:
        title = _text(_child(entry, "title")) or ""
        score = keyword_sentiment(title)
        items.append(
            NewsItem(
                source=source,
                title=title,
                url=_entry_link(entry),
                published_at=_entry_published(entry),
                score=score,
                impact=classify_impact(score),
            )
        )
    return items


class NewsClient:
    """Aggregates CryptoPanic posts (when a key is set) with free RSS feeds."""

    def __init__(
        self,
        cryptopanic_key: str | None = None,
        rss_urls: Iterable[str] = (),
        cryptopanic_base_url: str = "https://cryptopanic.com/api/v1/posts/",
    ) -> None:
        self._cryptopanic_key = cryptopanic_key
        self._rss_urls = list(rss_urls)
        self._cryptopanic_base_url = cryptopanic_base_url

    async def fetch(self, currencies: Sequence[str]) -> NewsSnapshot:
        """Gather, rank and de-duplicate headlines; failing sources are skipped."""
        items: list[NewsItem] = []
        async with httpx.AsyncClient(
            timeout=_TIMEOUT, headers={"User-Agent": _USER_AGENT}
        ) as client:
            if self._cryptopanic_key:
                try:
                    items.extend(
                        await self._fetch_cryptopanic(client, self._cryptopanic_key, currencies)
                    )
                except (httpx.HTTPError, ValueError):
                    pass
            for url in self._rss_urls:
                try:
                    items.extend(await self._fetch_rss(client, url))
                except (httpx.HTTPError, ValueError):
                    pass

        items.sort(key=lambda item: item.impact.value, reverse=True)
        deduped: list[NewsItem] = []
        for item in items:
            if deduped and deduped[-1].title == item.title:
                continue
            deduped.append(item)
        deduped = deduped[:_MAX_ITEMS]

        net = sum(i.score for i in deduped) / len(deduped) if deduped else 0.0
        return NewsSnapshot(items=deduped, net_score=net)

    async def _fetch_cryptopanic(
        self, client: httpx.AsyncClient, key: str, currencies: Sequence[str]
    ) -> list[NewsItem]:
        resp = await client.get(
            self._cryptopanic_base_url,
            params={"auth_token": key, "currencies": ",".join(currencies), "public": "true"},
        )
        resp.raise_for_status()
        return parse_cryptopanic_items(resp.json(), _PER_SOURCE_LIMIT)

    @staticmethod
    async def _fetch_rss(client: httpx.AsyncClient, url: str) -> list[NewsItem]:
        resp = await client.get(url)
        return parse_rss(resp.content, url)