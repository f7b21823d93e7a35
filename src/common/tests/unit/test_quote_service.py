import asyncio

import httpx
import pytest

from src.common.services.quote_service import Quote, QuoteService, recommendation_label
from src.common.utils.exceptions import QuoteUnavailable, ValidationError


def _service(handler, api_key="test-key", timeout=1.0):
    def client_factory(base_url, timeout, retries):
        return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(handler), timeout=timeout)

    return QuoteService(api_key=api_key, base_url="https://quotes.test/api/v1", timeout=timeout, client_factory=client_factory)


def _quote_handler(prices):
    def handler(request: httpx.Request):
        symbol = request.url.params["symbol"]
        if symbol not in prices:
            return httpx.Response(200, json={"c": 0, "d": None, "dp": None})
        price = prices[symbol]
        if isinstance(price, int) and price >= 400:
            return httpx.Response(price, json={"error": "boom"})
        return httpx.Response(200, json={"c": price, "d": 1.5, "dp": 0.8, "h": price + 1, "l": price - 1, "o": price, "pc": price - 1.5})
    return handler


@pytest.mark.asyncio
async def test_get_quote_parses_finnhub_payload():
    service = _service(_quote_handler({"AAPL": 189.5}))

    quote = await service.get_quote("aapl")

    assert isinstance(quote, Quote)
    assert quote.symbol == "AAPL"
    assert quote.current_price == 189.5
    assert quote.change == 1.5
    assert quote.previous_close == 188.0


@pytest.mark.asyncio
async def test_get_quote_zero_price_is_unavailable():
    service = _service(_quote_handler({}))

    with pytest.raises(QuoteUnavailable) as exc_info:
        await service.get_quote("ZZZZ")

    assert exc_info.value.symbol == "ZZZZ"


@pytest.mark.asyncio
async def test_get_quote_non_numeric_price_is_unavailable():
    def handler(request: httpx.Request):
        return httpx.Response(200, json={"c": "N/A", "d": "n/a"})

    service = _service(handler)

    with pytest.raises(QuoteUnavailable) as exc_info:
        await service.get_quote("AAPL")

    assert exc_info.value.symbol == "AAPL"
    assert "invalid price" in str(exc_info.value)


@pytest.mark.asyncio
async def test_get_quotes_non_numeric_price_does_not_break_batch():
    def handler(request: httpx.Request):
        if request.url.params["symbol"] == "BAD":
            return httpx.Response(200, json={"c": "N/A"})
        return httpx.Response(200, json={"c": 42.0, "d": "bogus"})

    service = _service(handler)

    quotes = await service.get_quotes(["BAD", "GOOD"])

    assert isinstance(quotes["BAD"], QuoteUnavailable)
    assert quotes["GOOD"].current_price == 42.0
    assert quotes["GOOD"].change is None


@pytest.mark.asyncio
async def test_get_quote_without_api_key():
    service = _service(_quote_handler({"AAPL": 1.0}), api_key=None)

    with pytest.raises(QuoteUnavailable):
        await service.get_quote("AAPL")


@pytest.mark.asyncio
async def test_get_quotes_isolates_failures_per_symbol():
    service = _service(_quote_handler({"AAPL": 189.5, "MSFT": 500}))

    quotes = await service.get_quotes(["AAPL", "msft", "NOPE"])

    assert quotes["AAPL"].current_price == 189.5
    assert isinstance(quotes["MSFT"], QuoteUnavailable)
    assert isinstance(quotes["NOPE"], QuoteUnavailable)


@pytest.mark.asyncio
async def test_get_quotes_times_out_slow_symbol():
    async def slow_or_fast(request: httpx.Request):
        if request.url.params["symbol"] == "SLOW":
            await asyncio.sleep(1)
        return httpx.Response(200, json={"c": 10.0})

    service = _service(slow_or_fast, timeout=0.05)

    quotes = await service.get_quotes(["SLOW", "FAST"])

    assert quotes["FAST"].current_price == 10.0
    assert isinstance(quotes["SLOW"], QuoteUnavailable)
    assert "timed out" in str(quotes["SLOW"])


@pytest.mark.asyncio
async def test_get_quotes_empty():
    service = _service(_quote_handler({}))

    assert await service.get_quotes([]) == {}


@pytest.mark.asyncio
async def test_search_symbols_passthrough():
    def handler(request: httpx.Request):
        assert request.url.path.endswith("/search")
        return httpx.Response(200, json={"count": 2, "result": [
            {"symbol": "AAPL", "description": "APPLE INC", "type": "Common Stock", "displaySymbol": "AAPL"},
            {"symbol": "AAPL.SW", "description": "APPLE INC", "type": "Common Stock", "displaySymbol": "AAPL.SW"},
        ]})

    service = _service(handler)

    results = await service.search_symbols("apple", limit=1)

    assert results == [{"symbol": "AAPL", "description": "APPLE INC", "type": "Common Stock"}]


@pytest.mark.asyncio
async def test_get_candles_passthrough():
    def handler(request: httpx.Request):
        assert request.url.path.endswith("/stock/candle")
        assert request.url.params["resolution"] == "W"
        assert request.url.params["from"] == "1700000000"
        assert request.url.params["to"] == "1700600000"
        return httpx.Response(200, json={
            "s": "ok", "t": [1700000000, 1700600000], "o": [10, 11], "h": [12, 13],
            "l": [9, 10], "c": [11, 12], "v": [1000, 1200],
        })

    service = _service(handler)

    candles = await service.get_candles("aapl", resolution="w", start=1700000000, end=1700600000)

    assert candles["symbol"] == "AAPL"
    assert candles["close"] == [11, 12]
    assert candles["timestamps"] == [1700000000, 1700600000]


@pytest.mark.asyncio
async def test_get_candles_defaults_to_last_30_days():
    seen = {}

    def handler(request: httpx.Request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"s": "ok", "t": [], "c": []})

    service = _service(handler)

    await service.get_candles("AAPL", end=1700000000)

    assert seen["resolution"] == "D"
    assert int(seen["to"]) - int(seen["from"]) == 30 * 24 * 60 * 60


@pytest.mark.asyncio
async def test_get_candles_no_data_is_unavailable():
    service = _service(lambda request: httpx.Response(200, json={"s": "no_data"}))

    with pytest.raises(QuoteUnavailable):
        await service.get_candles("ZZZZ")


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"resolution": "2H"}, {"start": 200, "end": 100}])
async def test_get_candles_invalid_arguments(kwargs):
    service = _service(lambda request: httpx.Response(200, json={"s": "ok"}))

    with pytest.raises(ValidationError):
        await service.get_candles("AAPL", **kwargs)


@pytest.mark.asyncio
async def test_get_recommendation_uses_latest_period():
    def handler(request: httpx.Request):
        assert request.url.path.endswith("/stock/recommendation")
        return httpx.Response(200, json=[
            {"period": "2024-03-01", "strongBuy": 10, "buy": 5, "hold": 3, "sell": 1, "strongSell": 1},
            {"period": "2024-02-01", "strongBuy": 0, "buy": 0, "hold": 0, "sell": 5, "strongSell": 5},
        ])

    service = _service(handler)

    result = await service.get_recommendation("AAPL")

    assert result["recommendation"] == "BUY"
    assert result["strong_buy"] == 10
    assert result["period"] == "2024-03-01"


@pytest.mark.asyncio
async def test_get_recommendation_empty_is_hold():
    service = _service(lambda request: httpx.Response(200, json=[]))

    result = await service.get_recommendation("AAPL")

    assert result["recommendation"] == "HOLD"
    assert result["buy"] == 0


@pytest.mark.parametrize("counts, expected", [
    ({}, "HOLD"),
    ({"strongBuy": 4, "buy": 1}, "BUY"),
    ({"strongSell": 3, "sell": 1, "hold": 1}, "SELL"),
    ({"buy": 2, "hold": 2, "sell": 2}, "HOLD"),
])
def test_recommendation_label(counts, expected):
    assert recommendation_label(**counts) == expected


@pytest.mark.asyncio
async def test_get_company_profile_passthrough():
    def handler(request: httpx.Request):
        assert request.url.path.endswith("/stock/profile2")
        return httpx.Response(200, json={
            "name": "Apple Inc", "country": "US", "currency": "USD", "exchange": "NASDAQ",
            "marketCapitalization": 3000000, "finnhubIndustry": "Technology",
        })

    service = _service(handler)

    profile = await service.get_company_profile("aapl")

    assert profile["symbol"] == "AAPL"
    assert profile["name"] == "Apple Inc"
    assert profile["industry"] == "Technology"
    assert profile["market_capitalization"] == 3000000


@pytest.mark.asyncio
async def test_passthrough_http_error_is_unavailable():
    service = _service(lambda request: httpx.Response(429, json={"error": "limit"}))

    with pytest.raises(QuoteUnavailable) as exc_info:
        await service.get_company_profile("AAPL")

    assert exc_info.value.symbol == "AAPL"
