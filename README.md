# aria-scalper

Building blocks for a crypto scalping bot. The package bundles:

- **Indicators** (`aria_scalper.indicators.averages`,
  `aria_scalper.indicators.ranges`): incremental `Ema`, `Rsi`, `Roc`,
  `Bollinger`, `Atr`, `Adx`, `Choppiness`, `Keltner` and session `Vwap`.
  Each one is fed one observation at a time and returns `None` until it has
  seen enough data.
- **Microstructure** (`aria_scalper.microstructure`): order-flow imbalance
  (`Ofi`), VPIN (`Vpin`) and a threshold gate (`Toxicity`).
- **Feeds** (`aria_scalper.feeds`): async `httpx` clients for the Fear & Greed
  index (`market.FearGreedClient`), futures funding and open interest
  (`market.FundingClient`), options IV skew (`options.DeribitOptionsClient`),
  news headlines from CryptoPanic and RSS/Atom (`news.NewsClient`), on-chain
  flows (`onchain.OnchainClient`) and social sentiment
  (`sentiment.SentimentClient`), plus pure parsing and scoring functions.
  `snapshot.ExternalSnapshot` gathers the results.
- **Learning** (`aria_scalper.learning`): `PerformanceMemory` aggregates
  closed trades, `LessonExtractor` turns the statistics into rules
  (cooldowns, derates, boosts, blacklists, LLM calibration) and
  `LearningPolicy` answers "is this trade allowed, and at what size?".
- **LLM context** (`aria_scalper.llm.context`): `MarketContext` renders a
  symbol's technical and external data as a text prompt.
- **Monitoring** (`aria_scalper.monitoring`): an SQLite `TradeJournal` and a
  JSON metrics dashboard built on Starlette.

Python 3.10 or later is required.

## Indicators

```python
from aria_scalper.indicators.averages import Ema, Rsi

Ema.compute([1.0, 2.0, 3.0, 4.0, 5.0], 3)          # 4.0 (SMA-seeded)
Rsi.compute([float(i) for i in range(1, 21)], 14)  # 100.0

ema = Ema(4)
for price in (1.0, 2.0, 3.0):
    assert ema.next(price) is None   # still seeding
ema.next(4.0)                        # 2.5
```

`Atr`, `Adx`, `Choppiness`, `Keltner` and `Vwap` live in
`aria_scalper.indicators.ranges` and take any candle object with `high`,
`low`, `close` and `volume` attributes. The same module exposes
`typical_price` and `true_range`.

## Order-flow microstructure

```python
from aria_scalper.microstructure import Ofi, Toxicity

ofi = Ofi(3)
for bid, ask in [(10.0, 10.0), (12.0, 9.0), (13.0, 9.5), (12.0, 8.0)]:
    value = ofi.update(bid, ask)
# value == 4.0

Toxicity().is_toxic(3.5, None, None)  # True
```

## Feeds

Every client is used with `await client.fetch(...)`. Clients that need an API
key return a neutral or empty result when none is given. The parsing helpers
can be used on their own:

```python
from aria_scalper.feeds.news import classify_impact, keyword_sentiment
from aria_scalper.feeds.market import classify_funding, FundingArbSignal

score = keyword_sentiment("BlackRock BTC ETF inflow surges")  # positive
classify_impact(score)
classify_funding(0.0002, 1.0) is FundingArbSignal.RECEIVE_FUNDING  # True
```

## Learning from the journal

```python
from aria_scalper.monitoring.journal import TradeJournal
from aria_scalper.learning.memory import PerformanceMemory
from aria_scalper.learning.lessons import LessonConfig, LessonExtractor
from aria_scalper.learning.policy import LearningPolicy

with TradeJournal.open_memory() as journal:
    trades = journal.closed_trades(500)

memory = PerformanceMemory.build(trades)
lessons = LessonExtractor(LessonConfig()).extract(memory)

policy = LearningPolicy()
policy.update(memory, lessons)

verdict = policy.evaluate("ema_ribbon", "TRENDING", "BTCUSDT")
if verdict.allowed:
    print("size x", verdict.size_multiplier)
print(policy.historical_summary("ema_ribbon", "TRENDING", "BTCUSDT"))
```

Three consecutive losses on the same strategy and symbol block that pair for
30 minutes; a strategy with at least 8 trades, a win rate of 65 % or more and
a profit factor of at least 1.5 gets a 1.2x size multiplier.

## Market context prompt

`MarketContext(...).build_prompt()` returns the "Market Context Packet" text:
asset info, technical snapshot, order book, and whichever external sections
(fear & greed, funding, options skew, on-chain, social sentiment, historical
performance, news headlines) are present.

## Dashboard

`create_dashboard_app(DashboardState(metrics=MetricsState("paper")))` returns
a Starlette application exposing `/`, `/healthz`, `/metrics`, `/lessons`,
`/survival` and `/dashboard`. `await serve_dashboard(state, host, port)` runs
it with uvicorn until cancelled; a failure to bind is logged, not raised.

## What the package does not do

- It does not call an LLM or parse its replies: it builds the prompt text
  only.
- It sends no Telegram or other chat alerts.
- It places no orders and talks to no exchange account.
- It has no command-line program; everything is used as a library.

## Running the tests

Install the `test` extra; the suite uses pytest, pytest-asyncio and respx.