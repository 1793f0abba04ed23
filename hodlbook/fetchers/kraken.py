"""Prices from the Kraken public ticker."""

from __future__ import annotations

from typing import Any

import requests

from ..types import STABLECOINS, Asset, Price, PriceFetchError, PriceFetcher

DEFAULT_BASE_URL = "https://api.kraken.com/0/public"
DEFAULT_TIMEOUT = 10.0


def to_kraken_pair(symbol: str) -> str:
    """Return Kraken's USD pair name for ``symbol``."""
    symbol = symbol.upper()
    if symbol == "BTC":
        return "XXBTZUSD"
    if symbol == "ETH":
        return "XETHZUSD"
    return symbol + "USD"


def from_kraken_pair(pair: str) -> str:
    """Return the asset symbol of a Kraken USD pair name."""
    pair = pair.upper()
    if pair.startswith("XXBT"):
        return "BTC"
    if pair.startswith("XETH"):
        return "ETH"
    if pair.startswith("X") and len(pair) > 4:
        pair = pair[1:]
    if pair.endswith("ZUSD"):
        return pair[:-4]
    if pair.endswith("USD"):
        return pair[:-3]
    return pair


def is_usd_pair(pair: str) -> bool:
    """Whether ``pair`` is quoted in USD."""
    return pair.upper().endswith("USD")


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid syntax: {text!r}")
    return float(text)


def _object(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PriceFetchError("failed to decode response: expected an object")
    return value


def _strings(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise PriceFetchError("failed to decode response: expected a list of strings")
    return value


def _closes(data: Any) -> dict[str, list[str]]:
    """Decode a ticker response into each pair's last-trade field."""
    data = _object(data)
    errors = _strings(data.get("error"))
    closes: dict[str, list[str]] = {}
    for name, entry in _object(data.get("result")).items():
        entry = _object(entry)
        _strings(entry.get("a"))
        _strings(entry.get("b"))
        closes[name] = _strings(entry.get("c"))
    if errors:
        raise PriceFetchError(f"kraken API error: {', '.join(errors)}")
    return closes


class KrakenPriceFetcher(PriceFetcher):
    """Reads USD prices from the last trade of Kraken's ticker."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.session = requests.Session()

    def _ticker(self, url: str, what: str) -> dict[str, list[str]]:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PriceFetchError(f"failed to fetch {what}: {exc}") from exc
        if response.status_code != 200:
            raise PriceFetchError(f"unexpected status code: {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise PriceFetchError(f"failed to decode response: {exc}") from exc
        return _closes(data)

    def fetch(self, price: Price) -> None:
        """Set ``price.value`` from the last trade; stablecoins are 1.0."""
        symbol = price.asset.symbol.upper()
        if symbol in STABLECOINS:
            price.value = 1.0
            return

        closes = self._ticker(f"{self.base_url}/Ticker?pair={to_kraken_pair(symbol)}", "price")
        for close in closes.values():
            if close:
                try:
                    price.value = _parse_float(close[0])
                except ValueError as exc:
                    raise PriceFetchError(f"invalid price format: {exc}") from exc
                return
        raise PriceFetchError(f"no price found for {symbol}")

    def fetch_many(self, *args: Price) -> None:
        """Set the value of each price Kraken reports; stablecoins are 1.0."""
        by_pair: dict[str, Price] = {}
        pairs: list[str] = []
        for price in args:
            symbol = price.asset.symbol.upper()
            if symbol in STABLECOINS:
                price.value = 1.0
                continue
            pair = to_kraken_pair(symbol)
            pairs.append(pair)
            by_pair[pair] = price
        if not pairs:
            return

        closes = self._ticker(f"{self.base_url}/Ticker?pair={','.join(pairs)}", "prices")
        for name, close in closes.items():
            if not close:
                continue
            try:
                value = _parse_float(close[0])
            except ValueError:
                continue
            symbol = from_kraken_pair(name)
            for pair, price in by_pair.items():
                if from_kraken_pair(pair) == symbol:
                    price.value = value

    def fetch_all(self) -> list[Price]:
        """Return one price per asset with a USD pair."""
        closes = self._ticker(f"{self.base_url}/Ticker", "prices")
        result: list[Price] = []
        seen: set[str] = set()
        for name, close in closes.items():
            if not is_usd_pair(name) or not close:
                continue
            try:
                value = _parse_float(close[0])
            except ValueError:
                continue
            symbol = from_kraken_pair(name)
            if symbol in seen:
                continue
            seen.add(symbol)
            result.append(Price(asset=Asset(name=symbol, symbol=symbol), value=value))
        return result