import time

import httpx
import pytest
import respx

from aria_scalper.feeds.onchain import (
    OnchainAsset,
    OnchainClient,
    OnchainSnapshot,
    latest_metric_value,
    parse_whale_tx_count,
)

GLASSNODE = "https://glassnode.example.com"
WHALE = "https://whale.example.com/"


def test_maps_supported_onchain_assets():
    assert OnchainAsset.from_symbol("BTCUSDT") is OnchainAsset.BTC
    assert OnchainAsset.from_symbol("ETHUSDT") is OnchainAsset.ETH
    assert OnchainAsset.from_symbol("SOLUSDT") is None
    assert OnchainAsset.from_symbol("btcusdt") is OnchainAsset.BTC


def test_asset_codes():
    assert OnchainAsset.BTC.glassnode_asset() == "BTC"
    assert OnchainAsset.ETH.whale_alert_currency() == "eth"


def test_parses_latest_glassnode_metric_value():
    payload = [{"t": 1, "v": "12.5"}, {"t": 2, "v": 15.0}]
    assert latest_metric_value(payload) == 15.0


def test_latest_metric_skips_unusable_points():
    payload = [{"t": 1, "v": "12.5"}, {"t": 2, "v": "n/a"}, {"t": 3}, {"t": 4, "v": None}]
    assert latest_metric_value(payload) == 12.5
    assert latest_metric_value({"v": 1}) is None
    assert latest_metric_value([{"v": "NaN"}]) is None


def test_parses_whale_alert_count_or_transactions():
    assert parse_whale_tx_count({"count": 7}) == 7
    assert parse_whale_tx_count({"transactions": [{}, {}, {}]}) == 3


def test_whale_count_falls_back_when_count_unusable():
    assert parse_whale_tx_count({"count": -1, "transactions": [{}]}) == 1
    assert parse_whale_tx_count({"count": 2**40, "transactions": []}) == 0
    assert parse_whale_tx_count({"result": "error"}) is None


@pytest.mark.asyncio
async def test_unsupported_symbol_makes_no_requests():
    with respx.mock as router:
        client = OnchainClient("placeholder", "placeholder", GLASSNODE, WHALE)
        snap = await client.fetch("SOLUSDT")
        assert router.calls.call_count == 0
    assert snap == OnchainSnapshot(symbol="SOLUSDT")


@pytest.mark.asyncio
async def test_without_keys_everything_is_empty():
    with respx.mock as router:
        snap = await OnchainClient(None, "", GLASSNODE, WHALE).fetch("BTCUSDT")
        assert router.calls.call_count == 0
    assert snap == OnchainSnapshot(symbol="BTCUSDT")


@pytest.mark.asyncio
async def test_fetch_collects_all_metrics():
    with respx.mock as router:
        inflow = router.get(
            host="glassnode.example.com",
            path="/v1/metrics/transactions/transfers_volume_to_exchanges_sum",
        ).mock(return_value=httpx.Response(200, json=[{"t": 1, "v": 100.0}]))
        router.get(
            host="glassnode.example.com",
            path="/v1/metrics/transactions/transfers_volume_from_exchanges_sum",
        ).mock(return_value=httpx.Response(200, json=[{"t": 1, "v": "50"}]))
        sopr = router.get(
            host="glassnode.example.com", path="/v1/metrics/indicators/sopr_adjusted"
        ).mock(return_value=httpx.Response(200, json=[{"t": 1, "v": 1.01}]))
        whale = router.get(host="whale.example.com", path="/v1/transactions").mock(
            return_value=httpx.Response(200, json={"count": 4})
        )
        snap = await OnchainClient("placeholder", "placeholder", GLASSNODE, WHALE).fetch(
            "ETHUSDT"
        )

    assert snap == OnchainSnapshot(
        symbol="ETHUSDT",
        exchange_inflow_24h=100.0,
        exchange_outflow_24h=50.0,
        whale_tx_1h=4,
        sopr_1h=1.01,
    )
    inflow_params = inflow.calls.last.request.url.params
    assert inflow_params["a"] == "ETH"
    assert inflow_params["i"] == "24h"
    assert sopr.calls.last.request.url.params["i"] == "1h"
    whale_params = whale.calls.last.request.url.params
    assert whale_params["currency"] == "eth"
    assert whale_params["min_value"] == "1000000"
    assert abs(int(whale_params["start"]) - (time.time() - 3600)) < 120


@pytest.mark.asyncio
async def test_failing_metric_is_missing():
    with respx.mock as router:
        router.get(host="glassnode.example.com").mock(return_value=httpx.Response(500))
        router.get(host="whale.example.com", path="/v1/transactions").mock(
            return_value=httpx.Response(200, json={"transactions": [{}, {}]})
        )
        snap = await OnchainClient("placeholder", "placeholder", GLASSNODE, WHALE).fetch(
            "BTCUSDT"
        )
    assert snap.exchange_inflow_24h is None
    assert snap.exchange_outflow_24h is None
    assert snap.sopr_1h is None
    assert snap.whale_tx_1h == 2