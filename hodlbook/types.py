"""Core price types shared by the price fetchers and the price service."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field

SOURCE_COINGECKO = "coingecko"
SOURCE_BINANCE = "binance"
SOURCE_KRAKEN = "kraken"
SOURCE_CRYPTOCOMPARE = "cryptocompare"
SOURCE_DEFILLAMA = "defillama"
SOURCE_GECKOTERMINAL = "geckoterminal"

STABLECOINS = frozenset({"USD", "USDT", "USDC"})


@dataclass
class Asset:
    """A tradable asset identified by its ticker symbol and name."""

    name: str = ""
    symbol: str = ""


@dataclass
class Price:
    """The USD value of an asset as reported by a price source."""

    asset: Asset = field(default_factory=Asset)
    value: float = 0.0
    source: str = ""
    pool_address: str = ""
    network: str = ""


class PriceFetchError(Exception):
    """Raised when a price source cannot deliver a price."""


class PriceFetcher(abc.ABC):
    """A source of asset prices."""

    @abc.abstractmethod
    def fetch(self, price: Price) -> None:
        """Fill in ``price.value`` for the asset of ``price``."""

    @abc.abstractmethod
    def fetch_many(self, *args: Price) -> None:
        """Fill in the value of every given price where the source knows it."""

    @abc.abstractmethod
    def fetch_all(self) -> list[Price]:
        """Return every price the source offers."""