"""Prices from the GeckoTerminal DEX pool API."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote_plus

import requests

from ..types import STABLECOINS, Asset, Price, PriceFetchError, PriceFetcher

DEFAULT_BASE_URL = "https://api.geckoterminal.com/api/v2"
DEFAULT_NETWORK = "eth"
DEFAULT_TIMEOUT = 10.0


def is_pool_address(value: str) -> bool:
    """Whether ``value`` looks like a 0x-prefixed 20-byte hex address."""
    return value.lower().startswith("0x") and len(value) == 42


def extract_symbol(pool_name: str) -> str:
    """Return the base token symbol of a pool name such as ``"WETH / USDC"``."""
    return pool_name.split(" / ")[0].strip()


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


def _list(value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise PriceFetchError("failed to decode response: expected a list")
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PriceFetchError(f"failed to decode response: {value!r} is not a string")
    return value


def _attributes(pool: Any) -> tuple[str, str, str]:
    """Return ``(price, name, address)`` from a pool's attributes."""
    attributes = _object(_object(pool).get("attributes"))
    return (
        _text(attributes.get("base_token_price_usd")),
        _text(attributes.get("name")),
        _text(attributes.get("address")),
    )


class GeckoTerminalPriceFetcher(PriceFetcher):
    """Reads USD prices of tokens from DEX pools on one network."""

    def __init__(
        self,
        network: str = DEFAULT_NETWORK,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.network = network
        self.base_url = base_url
        self.timeout = timeout
        self.session = requests.Session()

    def _get_json(self, url: str, what: str) -> Any:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PriceFetchError(f"failed to fetch {what}: {exc}") from exc
        if response.status_code != 200:
            raise PriceFetchError(f"unexpected status code: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise PriceFetchError(f"failed to decode response: {exc}") from exc

    def fetch(self, price: Price) -> None:
        """Set ``price.value`` by pool address or by searching pools; stablecoins are 1.0."""
        if price.asset.symbol.upper() in STABLECOINS:
            price.value = 1.0
            return
        if is_pool_address(price.asset.name) or is_pool_address(price.asset.symbol):
            self._fetch_by_pool_address(price)
        else:
            self._fetch_by_search(price)

    def _fetch_by_pool_address(self, price: Price) -> None:
        pool_address = price.asset.name
        if is_pool_address(price.asset.symbol):
            pool_address = price.asset.symbol

        data = _object(
            self._get_json(
                f"{self.base_url}/networks/{self.network}/pools/{pool_address.lower()}",
                "pool",
            )
        )
        text, name, address = _attributes(data.get("data"))
        if not text:
            raise PriceFetchError(f"no price available for pool {pool_address}")
        try:
            value = _parse_float(text)
        except ValueError as exc:
            raise PriceFetchError(f"invalid price format: {exc}") from exc

        price.value = value
        price.pool_address = address
        price.network = self.network
        price.asset.symbol = extract_symbol(name)
        price.asset.name = name

    def _fetch_by_search(self, price: Price) -> None:
        symbol = price.asset.symbol.upper()
        query = price.asset.symbol.lower()
        if price.asset.name and price.asset.name != price.asset.symbol.lower():
            query = price.asset.name.lower()

        data = _object(
            self._get_json(
                f"{self.base_url}/search/pools?query={quote_plus(query)}"
                f"&network={self.network}&page=1",
                "price",
            )
        )
        pools = _list(data.get("data"))
        parsed = [_attributes(pool) for pool in pools]
        if not parsed:
            raise PriceFetchError(f"no pools found for {symbol}")

        text, _, address = parsed[0]
        if not text:
            raise PriceFetchError(f"no price available for {symbol}")
        try:
            value = _parse_float(text)
        except ValueError as exc:
            raise PriceFetchError(f"invalid price format: {exc}") from exc

        price.value = value
        price.pool_address = address
        price.network = self.network

    def fetch_many(self, *args: Price) -> None:
        """Fetch each price in turn, leaving the ones that fail untouched."""
        for price in args:
            if price.asset.symbol.upper() in STABLECOINS:
                price.value = 1.0
                continue
            try:
                self.fetch(price)
            except PriceFetchError:
                continue

    def fetch_all(self) -> list[Price]:
        """Return one price per base token of the network's trending pools."""
        data = _object(
            self._get_json(
                f"{self.base_url}/networks/{self.network}/trending_pools?page=1", "prices"
            )
        )

        result: list[Price] = []
        seen: set[str] = set()
        for pool in _list(data.get("data")):
            text, name, _ = _attributes(pool)
            token = _object(
                _object(_object(_object(pool).get("relationships")).get("base_token")).get("data")
            )
            token_id = _text(token.get("id"))

            if not text:
                continue
            try:
                value = _parse_float(text)
            except ValueError:
                continue
            if value == 0:
                continue
            if len(token_id.split("_")) < 2:
                continue

            symbol = extract_symbol(name)
            if not symbol or symbol in seen:
                continue
            seen.add(symbol)
            result.append(Price(asset=Asset(symbol=symbol.upper(), name=symbol), value=value))
        return result