"""Prices from the Binance spot ticker, and the JSON-over-HTTP handling the fetchers share."""

from __future__ import annotations

from typing import Any

import requests

from ..pairs import Pair, PairNotFoundError, get_price_for_pair, pair_map
from ..types import STABLECOINS, Asset, Price, PriceFetchError, PriceFetcher

DEFAULT_BASE_URL = "https://api.binance.com/api/v3"
DEFAULT_TIMEOUT = 10.0


def _number(value: Any) -> float:
    """Return a JSON number as float, rejecting anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PriceFetchError(f"failed to decode response: {value!r} is not a number")
    return float(value)


def _text(value: Any) -> str:
    """Return a JSON string, treating null as empty."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PriceFetchError(f"failed to decode response: {value!r} is not a string")
    return value


def _object(value: Any) -> dict[str, Any]:
    """Return a JSON object, treating null as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PriceFetchError("failed to decode response: expected an object")
    return value


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid syntax: {text!r}")
    return float(text)


class _JsonFetcher(PriceFetcher):
    """A price fetcher that reads JSON documents over HTTP."""

    def __init__(self, base_url: str, timeout: float) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.session = requests.Session()

    def _headers(self) -> dict[str, str]:
        return {}

    def _get(self, url: str, what: str = "prices") -> requests.Response:
        try:
            return self.session.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise PriceFetchError(f"failed to fetch {what}: {exc}") from exc

    @staticmethod
    def _json(response: requests.Response) -> Any:
        if response.status_code != 200:
            raise PriceFetchError(f"unexpected status code: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise PriceFetchError(f"failed to decode response: {exc}") from exc

    def _get_json(self, url: str, what: str = "prices") -> Any:
        return self._json(self._get(url, what))


def _ticker(item: Any) -> tuple[str, str]:
    """Return ``(symbol, price)`` of a ticker entry, checking the field types."""
    entry = _object(item)
    return _text(entry.get("symbol")), _text(entry.get("price"))


class BinancePriceFetcher(_JsonFetcher):
    """Reads USD prices from the Binance ticker endpoints."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(base_url, timeout)

    def _all_tickers(self) -> list[tuple[str, str]]:
        data = self._get_json(f"{self.base_url}/ticker/price")
        if data is None:
            return []
        if not isinstance(data, list):
            raise PriceFetchError("failed to decode response: expected a list")
        return [_ticker(item) for item in data]

    def fetch(self, price: Price) -> None:
        """Set ``price.value`` from the ``<SYMBOL>USD`` ticker."""
        pair = price.asset.symbol + "USD"
        response = self._get(f"{self.base_url}/ticker/price?symbol={pair}", "price")
        if response.status_code == 400:
            raise PriceFetchError(f"invalid trading pair: {pair}")
        _, text = _ticker(self._json(response))
        try:
            price.value = _parse_float(text)
        except ValueError as exc:
            raise PriceFetchError(f"invalid price format: {exc}") from exc

    def fetch_many(self, *args: Price) -> None:
        """Set the value of each price, deriving it through anchor pairs if needed."""
        prices = pair_map(Pair(price=text, symbol=symbol) for symbol, text in self._all_tickers())
        for price in args:
            symbol = price.asset.symbol
            if symbol in STABLECOINS:
                price.value = 1.0
                continue
            try:
                price.value = get_price_for_pair(symbol + "USD", prices)
            except PairNotFoundError:
                continue

    def fetch_all(self) -> list[Price]:
        """Return one price per asset quoted in USDT or USD."""
        result: list[Price] = []
        seen: set[str] = set()
        for pair, text in self._all_tickers():
            if pair.endswith("USDT"):
                symbol = pair[:-4]
            elif pair.endswith("USD"):
                symbol = pair[:-3]
            else:
                continue
            if symbol in seen:
                continue
            seen.add(symbol)
            try:
                value = _parse_float(text)
            except ValueError:
                continue
            result.append(Price(asset=Asset(name=symbol, symbol=symbol), value=value))
        return result