import httpx
import pytest
import respx

from aria_scalper.feeds.market import (
    AltDataInputs,
    FearGreedClient,
    FearGreedLabel,
    FundingArbSignal,
    FundingClient,
    FundingSnapshot,
    alternative_data_score,
    classify_funding,
    funding_edge_bps,
    parse_fear_greed,
)


def test_computes_funding_edge():
    snapshot = FundingSnapshot(symbol="BTCUSDT", rate=0.0001)
    assert funding_edge_bps(snapshot, 3.0) == pytest.approx(3.0, abs=1e-12)
    assert classify_funding(0.0002, 1.0) == FundingArbSignal.RECEIVE_FUNDING


def test_funding_edge_prefers_predicted_rate_and_clamps_periods():
    snapshot = FundingSnapshot(symbol="BTCUSDT", rate=0.0001, predicted_rate=0.0002)
    assert funding_edge_bps(snapshot, 1.0) == pytest.approx(2.0)
    assert funding_edge_bps(snapshot, -5.0) == 0.0


def test_classify_funding_negative_and_neutral():
    assert classify_funding(-0.0002, 1.0) == FundingArbSignal.PAY_FUNDING_ONLY_WITH_STRONG_TREND
    assert classify_funding(0.00005, 1.0) == FundingArbSignal.NEUTRAL


def test_scores_alt_data_context():
    score = alternative_data_score(
        AltDataInputs(news_sentiment=0.5, social_sentiment=0.5, onchain_flow=0.2, fear_greed=70.0)
    )
    assert score > 0.0


def test_alt_data_score_is_clamped():
    top = alternative_data_score(
        AltDataInputs(news_sentiment=9.0, social_sentiment=9.0, onchain_flow=9.0, fear_greed=500.0)
    )
    assert top == pytest.approx(1.0)
    neutral = alternative_data_score(AltDataInputs(fear_greed=50.0))
    assert neutral == pytest.approx(0.0)


@pytest.mark.parametrize(
    "value,label",
    [
        (0, FearGreedLabel.EXTREME_FEAR),
        (24, FearGreedLabel.EXTREME_FEAR),
        (25, FearGreedLabel.FEAR),
        (44, FearGreedLabel.FEAR),
        (45, FearGreedLabel.NEUTRAL),
        (54, FearGreedLabel.NEUTRAL),
        (55, FearGreedLabel.GREED),
        (74, FearGreedLabel.GREED),
        (75, FearGreedLabel.EXTREME_GREED),
        (255, FearGreedLabel.EXTREME_GREED),
    ],
)
def test_fear_greed_label_boundaries(value, label):
    assert FearGreedLabel.from_value(value) is label


def test_parse_fear_greed_with_average():
    payload = {"data": [{"value": str(v)} for v in (80, 10, 20, 30, 40, 50, 60)]}
    snap = parse_fear_greed(payload)
    assert snap.value == 80
    assert snap.label is FearGreedLabel.EXTREME_GREED
    assert snap.avg_7d == 41


def test_parse_fear_greed_short_series_has_no_average():
    snap = parse_fear_greed({"data": [{"value": "50"}, {"value": "40"}]})
    assert snap.value == 50
    assert snap.avg_7d is None


def test_parse_fear_greed_bad_value_defaults_to_zero():
    snap = parse_fear_greed({"data": [{"value": "abc"}]})
    assert snap.value == 0
    assert snap.label is FearGreedLabel.EXTREME_FEAR


def test_parse_fear_greed_errors():
    with pytest.raises(ValueError, match="missing data"):
        parse_fear_greed({"nope": 1})
    with pytest.raises(ValueError, match="empty series"):
        parse_fear_greed({"data": []})


@pytest.mark.asyncio
async def test_fear_greed_client_fetch():
    with respx.mock() as router:
        route = router.get("https://fng.example.com/fng/").mock(
            return_value=httpx.Response(200, json={"data": [{"value": "30"}]})
        )
        snap = await FearGreedClient("https://fng.example.com/fng/").fetch()
    assert snap.value == 30
    assert snap.label is FearGreedLabel.FEAR
    assert route.calls.last.request.url.params["limit"] == "7"


@pytest.mark.asyncio
async def test_funding_client_fetch():
    with respx.mock() as router:
        router.get("https://fapi.example.com/fapi/v1/premiumIndex").mock(
            return_value=httpx.Response(200, json={"lastFundingRate": "0.0001"})
        )
        oi_route = router.get("https://fapi.example.com/fapi/v1/openInterest").mock(
            return_value=httpx.Response(200, json={"openInterest": "1234.5"})
        )
        snap = await FundingClient("https://fapi.example.com/").fetch("BTCUSDT")
    assert snap.symbol == "BTCUSDT"
    assert snap.rate == pytest.approx(0.0001)
    assert snap.open_interest == pytest.approx(1234.5)
    assert snap.predicted_rate is None
    assert oi_route.calls.last.request.url.params["symbol"] == "BTCUSDT"


@pytest.mark.asyncio
async def test_funding_client_open_interest_failure_is_none():
    with respx.mock() as router:
        router.get("https://fapi.example.com/fapi/v1/premiumIndex").mock(
            return_value=httpx.Response(200, json={})
        )
        router.get("https://fapi.example.com/fapi/v1/openInterest").mock(
            return_value=httpx.Response(500, json={"openInterest": "1"})
        )
        snap = await FundingClient("https://fapi.example.com").fetch("ETHUSDT")
    assert snap.rate == 0.0
    assert snap.open_interest is None