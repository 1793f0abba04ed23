"""Prices from the CryptoCompare data API."""

from __future__ import annotations

from typing import Any

from ..types import STABLECOINS, Asset, Price, PriceFetchError
from .binance import _JsonFetcher, _number, _object, _text

DEFAULT_BASE_URL = "https://min-api.cryptocompare.com/data"
DEFAULT_TIMEOUT = 10.0


def _usd_quotes(value: Any) -> dict[str, float]:
    return {currency: _number(amount) for currency, amount in _object(value).items()}


class CryptoComparePriceFetcher(_JsonFetcher):
    """Reads USD prices from CryptoCompare, optionally with an API key."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(base_url, timeout)
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"authorization": f"Apikey {self.api_key}"} if self.api_key else {}

    def fetch(self, price: Price) -> None:
        """Set ``price.value`` for the asset symbol; stablecoins are 1.0."""
        symbol = price.asset.symbol.upper()
        if symbol in STABLECOINS:
            price.value = 1.0
            return

        quotes = _usd_quotes(self._get_json(f"{self.base_url}/price?fsym={symbol}&tsyms=USD", "price"))
        if "USD" not in quotes:
            raise PriceFetchError(f"price not found for {symbol}")
        price.value = quotes["USD"]

    def fetch_many(self, *args: Price) -> None:
        """Set the value of each price CryptoCompare reports; stablecoins are 1.0."""
        by_symbol: dict[str, Price] = {}
        symbols: list[str] = []
        for price in args:
            symbol = price.asset.symbol.upper()
            if symbol in STABLECOINS:
                price.value = 1.0
                continue
            symbols.append(symbol)
            by_symbol[symbol] = price
        if not symbols:
            return

        data = _object(
            self._get_json(f"{self.base_url}/pricemulti?fsyms={','.join(symbols)}&tsyms=USD")
        )
        for symbol, quote in data.items():
            quotes = _usd_quotes(quote)
            if symbol in by_symbol and "USD" in quotes:
                by_symbol[symbol].value = quotes["USD"]

    def fetch_all(self) -> list[Price]:
        """Return prices of the top 100 coins by market cap."""
        data = _object(self._get_json(f"{self.base_url}/top/mktcapfull?limit=100&tsym=USD"))
        coins = data.get("Data") or []
        if not isinstance(coins, list):
            raise PriceFetchError("failed to decode response: Data is not a list")

        result: list[Price] = []
        for coin in map(_object, coins):
            info = _object(coin.get("CoinInfo"))
            raw_price = _object(_object(coin.get("RAW")).get("USD")).get("PRICE")
            value = 0.0 if raw_price is None else _number(raw_price)
            if value == 0:
                continue
            result.append(
                Price(
                    asset=Asset(
                        symbol=_text(info.get("Name")).upper(),
                        name=_text(info.get("FullName")),
                    ),
                    value=value,
                )
            )
        return result