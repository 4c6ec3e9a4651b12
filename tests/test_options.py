import httpx
import pytest
import respx

from aria_scalper.feeds.options import (
    DeribitOptionsClient,
    OptionSkewSnapshot,
    OptionUnderlying,
    derive_skew_snapshot,
)

ROWS = [
    {"instrument_name": "BTC-1JAN27-80000-C", "mark_iv": 55.0},
    {"instrument_name": "BTC-1JAN27-90000-C", "mark_iv": 60.0},
    {"instrument_name": "BTC-1JAN27-100000-C", "mark_iv": 65.0},
    {"instrument_name": "BTC-1JAN27-80000-P", "mark_iv": 45.0},
    {"instrument_name": "BTC-1JAN27-70000-P", "mark_iv": 50.0},
    {"instrument_name": "BTC-1JAN27-60000-P", "mark_iv": 52.0},
]


def test_scores_iv_skew():
    skew = OptionSkewSnapshot(
        underlying=OptionUnderlying.BTC,
        call_25d_iv=0.65,
        put_25d_iv=0.55,
        atm_iv=0.60,
        sample_size=10,
    )
    assert skew.skew_bps() > 0.0
    assert skew.sentiment_score() > 0.0


def test_skew_zero_when_atm_missing():
    skew = OptionSkewSnapshot(OptionUnderlying.ETH, 0.7, 0.5, 0.0, 6)
    assert skew.skew_bps() == 0.0
    assert skew.sentiment_score() == 0.0


def test_sentiment_score_is_clamped():
    skew = OptionSkewSnapshot(OptionUnderlying.BTC, 0.2, 0.9, 0.5, 6)
    assert skew.sentiment_score() == -1.0


def test_maps_supported_underlyings():
    assert OptionUnderlying.from_symbol("BTCUSDT") is OptionUnderlying.BTC
    assert OptionUnderlying.from_symbol("ethusdt") is OptionUnderlying.ETH
    assert OptionUnderlying.from_symbol("SOLUSDT") is None
    assert OptionUnderlying.BTC.deribit_currency() == "BTC"
    assert OptionUnderlying.ETH.deribit_currency() == "ETH"


def test_derives_skew_from_deribit_iv_rows():
    snapshot = derive_skew_snapshot(OptionUnderlying.BTC, ROWS)
    assert snapshot is not None
    assert snapshot.underlying is OptionUnderlying.BTC
    assert snapshot.sample_size == 6
    assert snapshot.call_25d_iv > snapshot.put_25d_iv
    assert snapshot.call_25d_iv == pytest.approx(0.65)
    assert snapshot.put_25d_iv == pytest.approx(0.52)
    assert snapshot.atm_iv == pytest.approx(0.55)


def test_derive_skips_invalid_rows_and_needs_three_each_side():
    rows = ROWS[:5] + [
        {"instrument_name": "BTC-1JAN27-50000-P", "mark_iv": None},
        {"instrument_name": "BTC-1JAN27-40000-P", "mark_iv": -1.0},
        {"instrument_name": "BTC-1JAN27-30000-P", "mark_iv": float("nan")},
    ]
    assert derive_skew_snapshot(OptionUnderlying.BTC, rows) is None


@pytest.mark.asyncio
async def test_client_fetches_and_derives():
    with respx.mock() as router:
        route = router.get(
            "https://deribit.example.com/api/v2/public/get_book_summary_by_currency"
        ).mock(return_value=httpx.Response(200, json={"result": ROWS}))
        snap = await DeribitOptionsClient("https://deribit.example.com/").fetch("BTCUSDT")
    assert snap is not None
    assert snap.sample_size == 6
    params = route.calls.last.request.url.params
    assert params["currency"] == "BTC"
    assert params["kind"] == "option"


@pytest.mark.asyncio
async def test_client_unsupported_symbol_returns_none():
    with respx.mock() as router:
        route = router.get(
            "https://deribit.example.com/api/v2/public/get_book_summary_by_currency"
        ).mock(return_value=httpx.Response(200, json={"result": ROWS}))
        snap = await DeribitOptionsClient("https://deribit.example.com").fetch("SOLUSDT")
        assert snap is None
        assert route.call_count == 0


@pytest.mark.asyncio
async def test_client_missing_result_raises():
    with respx.mock() as router:
        router.get(
            "https://deribit.example.com/api/v2/public/get_book_summary_by_currency"
        ).mock(return_value=httpx.Response(200, json={"error": "x"}))
        with pytest.raises(ValueError):
            await DeribitOptionsClient("https://deribit.example.com").fetch("ETHUSDT")