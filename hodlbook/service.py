"""A price service that combines several price sources behind one interface."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .fetchers.binance import BinancePriceFetcher
from .fetchers.coingecko import CoinGeckoPriceFetcher
from .fetchers.cryptocompare import CryptoComparePriceFetcher
from .fetchers.defillama import DefiLlamaPriceFetcher
from .fetchers.geckoterminal import GeckoTerminalPriceFetcher
from .fetchers.kraken import KrakenPriceFetcher
from .types import (
    SOURCE_BINANCE,
    SOURCE_COINGECKO,
    SOURCE_CRYPTOCOMPARE,
    SOURCE_DEFILLAMA,
    SOURCE_GECKOTERMINAL,
    SOURCE_KRAKEN,
    Asset,
    Price,
    PriceFetchError,
    PriceFetcher,
)

CACHE_TTL = 60.0

_DEEP_SEARCH_PROVIDERS: dict[str, Callable[[], PriceFetcher]] = {
    SOURCE_KRAKEN: KrakenPriceFetcher,
    SOURCE_BINANCE: BinancePriceFetcher,
    SOURCE_COINGECKO: CoinGeckoPriceFetcher,
    SOURCE_DEFILLAMA: DefiLlamaPriceFetcher,
    SOURCE_GECKOTERMINAL: GeckoTerminalPriceFetcher,
}


def available_deep_search_providers() -> list[str]:
    """Return the providers a deep search consults by default, in order."""
    return [
        SOURCE_DEFILLAMA,
        SOURCE_GECKOTERMINAL,
        SOURCE_KRAKEN,
        SOURCE_BINANCE,
        SOURCE_COINGECKO,
    ]


def _is_pool_address(value: str) -> bool:
    return value.lower().startswith("0x") and len(value) == 42


@dataclass
class DeepSearchResult:
    """A price found for a search query by one provider."""

    symbol: str
    name: str
    price: float
    source: str
    pool_address: str = ""
    network: str = ""

    def as_dict(self) -> dict[str, Any]:
        """Return the result as a JSON-ready mapping, omitting empty pool details."""
        data: dict[str, Any] = {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "source": self.source,
        }
        if self.pool_address:
            data["pool_address"] = self.pool_address
        if self.network:
            data["network"] = self.network
        return data


class _PriceCache:
    """Remembers the full price list and single prices for a limited time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stamp: float | None = None
        self._prices: list[Price] = []
        self._by_symbol: dict[str, tuple[float, float]] = {}

    def get(self, ttl: float) -> list[Price] | None:
        with self._lock:
            if self._stamp is None or time.monotonic() - self._stamp > ttl:
                return None
            return self._prices

    def set(self, prices: list[Price]) -> None:
        with self._lock:
            now = time.monotonic()
            self._stamp = now
            self._prices = prices
            for price in prices:
                self._by_symbol[price.asset.symbol] = (price.value, now)

    def get_symbol(self, symbol: str, ttl: float) -> float | None:
        with self._lock:
            entry = self._by_symbol.get(symbol)
            if entry is None or time.monotonic() - entry[1] > ttl:
                return None
            return entry[0]

    def set_symbol(self, symbol: str, value: float) -> None:
        with self._lock:
            self._by_symbol[symbol] = (value, time.monotonic())


class PriceService(PriceFetcher):
    """Fetches prices from Kraken, then Binance, then CoinGecko, with a short cache."""

    def __init__(
        self,
        kraken: PriceFetcher | None = None,
        binance: PriceFetcher | None = None,
        coingecko: PriceFetcher | None = None,
    ) -> None:
        self.kraken = KrakenPriceFetcher() if kraken is None else kraken
        self.binance = BinancePriceFetcher() if binance is None else binance
        self.coingecko = CoinGeckoPriceFetcher() if coingecko is None else coingecko
        self.cache_ttl = CACHE_TTL
        self._cache = _PriceCache()

    def fetch(self, price: Price) -> None:
        """Set ``price.value`` from the first source that knows it."""
        symbol = price.asset.symbol
        cached = self._cache.get_symbol(symbol, self.cache_ttl)
        if cached is not None:
            price.value = cached
            return

        failures: list[str] = []
        for label, fetcher in (
            ("kraken", self.kraken),
            ("binance", self.binance),
            ("coingecko", self.coingecko),
        ):
            try:
                fetcher.fetch(price)
            except PriceFetchError as exc:
                failures.append(f"{label} error: {exc}")
                continue
            self._cache.set_symbol(symbol, price.value)
            return
        raise PriceFetchError("; ".join(failures))

    def fetch_many(self, *args: Price) -> None:
        """Set the value of each price found in the merged price list."""
        values = {price.asset.symbol: price.value for price in self.fetch_all()}
        for price in args:
            if price.asset.symbol in values:
                price.value = values[price.asset.symbol]

    def fetch_all(self) -> list[Price]:
        """Return prices merged from all sources, Kraken first, then Binance.

        CoinGecko fills in missing assets and supplies names for known ones.
        Raises only when every source fails.
        """
        cached = self._cache.get(self.cache_ttl)
        if cached is not None:
            return cached

        merged: dict[str, Price] = {}
        failures: list[str] = []

        try:
            for price in self.kraken.fetch_all():
                if price.value != 0:
                    merged[price.asset.symbol] = price
        except PriceFetchError as exc:
            failures.append(f"kraken: {exc}")

        try:
            for price in self.binance.fetch_all():
                if price.value != 0:
                    merged.setdefault(price.asset.symbol, price)
        except PriceFetchError as exc:
            failures.append(f"binance: {exc}")

        try:
            for price in self.coingecko.fetch_all():
                if price.value == 0:
                    continue
                existing = merged.get(price.asset.symbol)
                if existing is not None:
                    existing.asset.name = price.asset.name
                else:
                    merged[price.asset.symbol] = price
        except PriceFetchError as exc:
            failures.append(f"coingecko: {exc}")

        if len(failures) == 3:
            raise PriceFetchError("; ".join(failures))

        prices = list(merged.values())
        self._cache.set(prices)
        return prices

    def deep_search(
        self,
        query: str,
        name: str = "",
        network: str = "",
        providers: Sequence[str] | None = None,
    ) -> list[DeepSearchResult]:
        """Ask each provider for a price of ``query`` and collect the hits.

        Providers that fail, are unknown or report zero are skipped.
        """
        if not providers:
            providers = available_deep_search_providers()

        query = query.strip()
        if not query:
            raise ValueError("query cannot be empty")
        name = name.strip() or query.lower()
        network = network.strip()
        by_pool = bool(network) and _is_pool_address(query)

        results: list[DeepSearchResult] = []
        for provider in providers:
            fetcher: PriceFetcher
            if by_pool and provider == SOURCE_GECKOTERMINAL:
                fetcher = GeckoTerminalPriceFetcher(network=network)
            elif by_pool and provider == SOURCE_DEFILLAMA:
                fetcher = DefiLlamaPriceFetcher(network=network, contract=query)
            else:
                factory = _DEEP_SEARCH_PROVIDERS.get(provider)
                if factory is None:
                    continue
                fetcher = factory()

            price = Price(asset=Asset(symbol=query.upper(), name=name))
            try:
                fetcher.fetch(price)
            except PriceFetchError:
                continue
            if price.value == 0:
                continue

            results.append(
                DeepSearchResult(
                    symbol=price.asset.symbol.upper(),
                    name=price.asset.name,
                    price=price.value,
                    source=provider,
                    pool_address=price.pool_address,
                    network=price.network,
                )
            )
        return results

    def fetch_by_source(self, source: str, price: Price) -> None:
        """Fetch ``price`` from the named source, or from all sources if unknown."""
        if source == SOURCE_CRYPTOCOMPARE:
            CryptoComparePriceFetcher().fetch(price)
        elif source == SOURCE_DEFILLAMA:
            DefiLlamaPriceFetcher().fetch(price)
        elif source == SOURCE_GECKOTERMINAL:
            GeckoTerminalPriceFetcher().fetch(price)
        elif source == SOURCE_COINGECKO:
            self.coingecko.fetch(price)
        elif source == SOURCE_BINANCE:
            self.binance.fetch(price)
        elif source == SOURCE_KRAKEN:
            self.kraken.fetch(price)
        else:
            self.fetch(price)