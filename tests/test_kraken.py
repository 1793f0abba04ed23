import pytest
import responses

from hodlbook.fetchers.kraken import (
    KrakenPriceFetcher,
    from_kraken_pair,
    is_usd_pair,
    to_kraken_pair,
)
from hodlbook.types import Asset, Price, PriceFetchError

BASE = "http://kraken.test/0/public"
TICKER = f"{BASE}/Ticker"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def fetcher():
    return KrakenPriceFetcher(base_url=BASE)


def _ticker(result, error=()):
    return {"error": list(error), "result": {name: {"c": close} for name, close in result.items()}}


def test_fetch(mocked, fetcher):
    mocked.add(
        responses.GET, TICKER, json=_ticker({"XXBTZUSD": ["87267.53", "0.001"]})
    )
    price = Price(asset=Asset(name="Bitcoin", symbol="BTC"))
    fetcher.fetch(price)
    assert price.value == 87267.53
    assert "pair=XXBTZUSD" in mocked.calls[0].request.url


def test_fetch_many(mocked, fetcher):
    mocked.add(
        responses.GET,
        TICKER,
        json=_ticker(
            {"XXBTZUSD": ["87222.51", "0.001"], "XETHZUSD": ["2933.91", "0.01"]}
        ),
    )
    prices = [
        Price(asset=Asset(name="Bitcoin", symbol="BTC")),
        Price(asset=Asset(name="Ethereum", symbol="ETH")),
    ]
    fetcher.fetch_many(*prices)
    assert prices[0].value == 87222.51
    assert prices[1].value == 2933.91
    url = mocked.calls[0].request.url
    assert "XXBTZUSD" in url and "XETHZUSD" in url


def test_fetch_many_stablecoins_return_one(mocked, fetcher):
    mocked.add(responses.GET, TICKER, json=_ticker({}))
    prices = [
        Price(asset=Asset(name="USD", symbol="USD")),
        Price(asset=Asset(name="Tether", symbol="USDT")),
        Price(asset=Asset(name="USD Coin", symbol="USDC")),
    ]
    fetcher.fetch_many(*prices)
    assert [p.value for p in prices] == [1.0, 1.0, 1.0]


def test_fetch_http_error(mocked, fetcher):
    mocked.add(responses.GET, TICKER, status=429)
    price = Price(asset=Asset(name="Bitcoin", symbol="BTC"))
    with pytest.raises(PriceFetchError, match="429"):
        fetcher.fetch(price)


def test_fetch_api_error(mocked, fetcher):
    mocked.add(
        responses.GET, TICKER, json=_ticker({}, error=["EQuery:Unknown asset pair"])
    )
    price = Price(asset=Asset(name="Unknown", symbol="XXX"))
    with pytest.raises(PriceFetchError, match="Unknown asset pair"):
        fetcher.fetch(price)


def test_fetch_no_price_found(mocked, fetcher):
    mocked.add(responses.GET, TICKER, json=_ticker({"SOLUSD": []}))
    price = Price(asset=Asset(name="Solana", symbol="SOL"))
    with pytest.raises(PriceFetchError, match="no price found for SOL"):
        fetcher.fetch(price)


def test_fetch_invalid_price(mocked, fetcher):
    mocked.add(responses.GET, TICKER, json=_ticker({"SOLUSD": ["abc"]}))
    price = Price(asset=Asset(name="Solana", symbol="SOL"))
    with pytest.raises(PriceFetchError, match="invalid price format"):
        fetcher.fetch(price)


def test_fetch_stablecoin_without_request(mocked, fetcher):
    price = Price(asset=Asset(name="Tether", symbol="usdt"))
    fetcher.fetch(price)
    assert price.value == 1.0
    assert len(mocked.calls) == 0


def test_fetch_all(mocked, fetcher):
    mocked.add(
        responses.GET,
        TICKER,
        json=_ticker(
            {
                "XXBTZUSD": ["87000.0", "0.001"],
                "XETHZUSD": ["2900.0", "0.01"],
                "XXBTZEUR": ["80000.0", "0.001"],
            }
        ),
    )
    prices = fetcher.fetch_all()
    assert len(prices) == 2
    by_symbol = {p.asset.symbol: p.value for p in prices}
    assert by_symbol == {"BTC": 87000.0, "ETH": 2900.0}


def test_fetch_all_skips_duplicates_and_bad_entries(mocked, fetcher):
    mocked.add(
        responses.GET,
        TICKER,
        json=_ticker(
            {
                "SOLUSD": ["150.0", "1"],
                "XSOLZUSD": ["151.0", "1"],
                "ADAUSD": [],
                "DOTUSD": ["oops"],
            }
        ),
    )
    prices = fetcher.fetch_all()
    assert [(p.asset.symbol, p.value) for p in prices] == [("SOL", 150.0)]


def test_to_kraken_pair():
    assert to_kraken_pair("BTC") == "XXBTZUSD"
    assert to_kraken_pair("ETH") == "XETHZUSD"
    assert to_kraken_pair("SOL") == "SOLUSD"
    assert to_kraken_pair("sol") == "SOLUSD"


def test_from_kraken_pair():
    assert from_kraken_pair("XXBTZUSD") == "BTC"
    assert from_kraken_pair("XETHZUSD") == "ETH"
    assert from_kraken_pair("SOLUSD") == "SOL"
    assert from_kraken_pair("XLTCZUSD") == "LTC"


@pytest.mark.parametrize(
    ("pair", "expected"),
    [("XXBTZUSD", True), ("SOLUSD", True), ("XXBTZEUR", False), ("solusd", True)],
)
def test_is_usd_pair(pair, expected):
    assert is_usd_pair(pair) is expected