"""Prices from the DefiLlama coins API."""

from __future__ import annotations

from typing import Any

import requests

from ..types import STABLECOINS, Price, PriceFetchError, PriceFetcher

DEFAULT_BASE_URL = "https://coins.llama.fi"
DEFAULT_NETWORK = "ethereum"
DEFAULT_TIMEOUT = 10.0


def is_contract_address(value: str) -> bool:
    """Whether ``value`` looks like a 0x-prefixed 20-byte hex address."""
    return value.lower().startswith("0x") and len(value) == 42


def _coin_prices(data: Any) -> dict[str, float]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PriceFetchError("failed to decode response: expected an object")
    coins = data.get("coins") or {}
    if not isinstance(coins, dict):
        raise PriceFetchError("failed to decode response: coins is not an object")

    result: dict[str, float] = {}
    for coin_id, coin in coins.items():
        if coin is None:
            coin = {}
        if not isinstance(coin, dict):
            raise PriceFetchError("failed to decode response: coin entry is not an object")
        value = coin.get("price", 0.0)
        if value is None:
            value = 0.0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PriceFetchError(f"failed to decode response: {value!r} is not a number")
        result[coin_id] = float(value)
    return result


class DefiLlamaPriceFetcher(PriceFetcher):
    """Reads USD prices from DefiLlama by CoinGecko id or by token contract."""

    def __init__(
        self,
        network: str = DEFAULT_NETWORK,
        contract: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.network = network
        self.contract = contract
        self.base_url = base_url
        self.timeout = timeout
        self.session = requests.Session()

    def _get_coins(self, identifiers: str, what: str) -> dict[str, float]:
        url = f"{self.base_url}/prices/current/{identifiers}"
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
        return _coin_prices(data)

    def _identifier(self, price: Price) -> str:
        if self.contract:
            return f"{self.network}:{self.contract}"
        if is_contract_address(price.asset.name):
            return f"{self.network}:{price.asset.name}"
        return f"coingecko:{price.asset.name.lower()}"

    def fetch(self, price: Price) -> None:
        """Set ``price.value``; contract lookups also set network and pool address."""
        symbol = price.asset.symbol.upper()
        if symbol in STABLECOINS:
            price.value = 1.0
            return

        coins = self._get_coins(self._identifier(price), "price")
        for coin_id, value in coins.items():
            price.value = value
            if ":0x" in coin_id:
                network, _, address = coin_id.partition(":")
                price.network = network
                price.pool_address = address
            return
        raise PriceFetchError(f"price not found for {symbol}")

    def fetch_many(self, *args: Price) -> None:
        """Set the value of each price found by CoinGecko id; stablecoins are 1.0."""
        by_id: dict[str, Price] = {}
        ids: list[str] = []
        for price in args:
            if price.asset.symbol.upper() in STABLECOINS:
                price.value = 1.0
                continue
            coin_id = f"coingecko:{price.asset.name.lower()}"
            ids.append(coin_id)
            by_id[coin_id] = price
        if not ids:
            return

        for coin_id, value in self._get_coins(",".join(ids), "prices").items():
            if coin_id in by_id:
                by_id[coin_id].value = value

    def fetch_all(self) -> list[Price]:
        """Always raises: DefiLlama cannot list every price."""
        raise PriceFetchError(
            "FetchAll not supported: DefiLlama requires specific coin identifiers"
        )