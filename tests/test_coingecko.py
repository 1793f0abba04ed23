import json
from urllib.parse import parse_qs, urlsplit

import pytest
import responses

from hodlbook.fetchers.coingecko import CoinGeckoPriceFetcher
from hodlbook.types import Asset, Price, PriceFetchError

BASE = "https://coingecko.example.com/api/v3"
MARKETS = f"{BASE}/coins/markets"
SIMPLE = f"{BASE}/simple/price"
BITCOIN_PAGE = json.dumps([{"id": "bitcoin", "symbol": "btc", "current_price": 87000.0}])


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def fetcher():
    return CoinGeckoPriceFetcher(base_url=BASE)


def _price(name, symbol, value=0.0):
    return Price(asset=Asset(name=name, symbol=symbol), value=value)


def _serve_pages(mocked, pages, calls=None, status_for_missing=200):
    def callback(request):
        if calls is not None:
            calls.append(request.url)
        page = parse_qs(urlsplit(request.url).query).get("page", ["1"])[0]
        if page not in pages and status_for_missing != 200:
            return status_for_missing, {}, ""
        return 200, {"Content-Type": "application/json"}, pages.get(page, "[]")

    mocked.add_callback(responses.GET, MARKETS, callback=callback)


def test_fetch(mocked, fetcher):
    mocked.add(responses.GET, SIMPLE, json={"bitcoin": {"usd": 87267.53}})
    price = _price("Bitcoin", "BTC")
    fetcher.fetch(price)
    assert price.value == 87267.53
    assert "ids=bitcoin" in mocked.calls[0].request.url


@pytest.mark.parametrize(
    "payload, assets, expected",
    [
        (
            {"bitcoin": {"usd": 87222.51}, "ethereum": {"usd": 2933.91}},
            [("Bitcoin", "BTC"), ("Ethereum", "ETH")],
            [87222.51, 2933.91],
        ),
        ({}, [("Nothing", "NOPE")], [3.5]),
    ],
)
def test_fetch_many(mocked, fetcher, payload, assets, expected):
    mocked.add(responses.GET, SIMPLE, json=payload)
    prices = [_price(name, symbol, 3.5) for name, symbol in assets]
    fetcher.fetch_many(*prices)
    assert [p.value for p in prices] == expected


def test_fetch_many_stablecoins_return_one(mocked, fetcher):
    prices = [_price("USD", "USD"), _price("Tether", "USDT"), _price("USD Coin", "USDC")]
    fetcher.fetch_many(*prices)
    assert [p.value for p in prices] == [1.0, 1.0, 1.0]
    assert len(mocked.calls) == 0


def test_fetch_http_error(mocked, fetcher):
    mocked.add(responses.GET, SIMPLE, status=429)
    with pytest.raises(PriceFetchError, match="429"):
        fetcher.fetch(_price("Bitcoin", "BTC"))


def test_fetch_all(mocked, fetcher):
    pages = {
        "1": json.dumps([
            {"id": "bitcoin", "symbol": "btc", "current_price": 87000.0},
            {"id": "ethereum", "symbol": "eth", "current_price": 2900.0},
        ]),
        "2": json.dumps([
            {"id": "lombard-protocol", "symbol": "bard", "current_price": 0.78},
            {"id": "spectra-finance", "symbol": "spectra", "current_price": 0.006},
        ]),
    }
    _serve_pages(mocked, pages)
    prices = fetcher.fetch_all()
    assert len(prices) == 4
    assert (prices[0].asset.name, prices[0].asset.symbol, prices[0].value) == ("bitcoin", "BTC", 87000.0)
    assert (prices[2].asset.name, prices[2].asset.symbol) == ("lombard-protocol", "BARD")


@pytest.mark.parametrize(
    "pages, requested, expected_calls",
    [
        ({"1": BITCOIN_PAGE}, 5, 2),
        (
            {
                "1": BITCOIN_PAGE,
                "2": """[
                    {"id": "dead-coin-1", "symbol": "dc1", "current_price": null},
                    {"id": "dead-coin-2", "symbol": "dc2", "current_price": 0}
                ]""",
                "3": '[{"id": "shouldnt-reach", "symbol": "sr", "current_price": 100.0}]',
            },
            5,
            2,
        ),
    ],
)
def test_fetch_all_pages_stops_early(mocked, fetcher, pages, requested, expected_calls):
    calls = []
    _serve_pages(mocked, pages, calls)
    prices = fetcher.fetch_all_pages(requested)
    assert [p.asset.name for p in prices] == ["bitcoin"]
    assert len(calls) == expected_calls


def test_fetch_all_pages_first_page_error(mocked, fetcher):
    mocked.add(responses.GET, MARKETS, status=429)
    with pytest.raises(PriceFetchError, match="429"):
        fetcher.fetch_all_pages(3)


def test_fetch_all_pages_later_page_error(mocked, fetcher):
    _serve_pages(mocked, {"1": BITCOIN_PAGE}, status_for_missing=429)
    prices = fetcher.fetch_all_pages(3)
    assert [p.asset.name for p in prices] == ["bitcoin"]


def test_fetch_all_pages_skips_null_prices(mocked, fetcher):
    pages = {
        "1": """[
            {"id": "bitcoin", "symbol": "btc", "current_price": 87000.0},
            {"id": "no-price-coin", "symbol": "npc", "current_price": null},
            {"id": "zero-price", "symbol": "zero", "current_price": 0},
            {"id": "ethereum", "symbol": "eth", "current_price": 2900.0}
        ]""",
    }
    _serve_pages(mocked, pages)
    prices = fetcher.fetch_all_pages(2)
    assert [p.asset.name for p in prices] == ["bitcoin", "ethereum"]