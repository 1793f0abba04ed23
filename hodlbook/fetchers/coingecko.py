"""Prices from the CoinGecko public API."""

from __future__ import annotations

from ..types import STABLECOINS, Asset, Price, PriceFetchError
from .binance import _JsonFetcher, _number, _object, _text

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
DEFAULT_TIMEOUT = 10.0
DEFAULT_PAGES = 5
DEFAULT_PER_PAGE = 250


class CoinGeckoPriceFetcher(_JsonFetcher):
    """Reads USD prices from CoinGecko, looking assets up by their coin id (name)."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(base_url, timeout)

    def fetch(self, price: Price) -> None:
        """Set ``price.value`` using the lower-cased asset name as coin id."""
        self.fetch_many(price)

    def fetch_many(self, *args: Price) -> None:
        """Set the value of each price that CoinGecko knows; stablecoins are 1.0."""
        wanted: list[Price] = []
        for price in args:
            if price.asset.symbol.upper() in STABLECOINS:
                price.value = 1.0
            else:
                wanted.append(price)
        if not wanted:
            return

        ids = ",".join(price.asset.name.lower() for price in wanted)
        data = _object(self._get_json(f"{self.base_url}/simple/price?ids={ids}&vs_currencies=usd"))
        quotes = {
            coin: {currency: _number(value) for currency, value in _object(entry).items()}
            for coin, entry in data.items()
        }
        for price in wanted:
            value = quotes.get(price.asset.name.lower(), {}).get("usd")
            if value is not None:
                price.value = value

    def fetch_all(self) -> list[Price]:
        """Return prices of the top coins by market cap."""
        return self.fetch_all_pages(DEFAULT_PAGES)

    def fetch_all_pages(self, pages: int) -> list[Price]:
        """Collect up to ``pages`` market pages, stopping early at an empty page.

        A failure on the first page is raised; on a later page it ends the walk.
        """
        result: list[Price] = []
        for page in range(1, pages + 1):
            try:
                page_prices = self._fetch_page(page)
            except PriceFetchError:
                if page == 1:
                    raise
                break
            if not page_prices:
                break
            result.extend(page_prices)
        return result

    def _fetch_page(self, page: int) -> list[Price]:
        data = self._get_json(
            f"{self.base_url}/coins/markets?vs_currency=usd"
            f"&per_page={DEFAULT_PER_PAGE}&page={page}"
        )
        if data is None:
            return []
        if not isinstance(data, list):
            raise PriceFetchError("failed to decode response: expected a list")

        result: list[Price] = []
        for item in map(_object, data):
            raw = item.get("current_price")
            if raw is None:
                continue
            value = _number(raw)
            if value == 0:
                continue
            coin_id = _text(item.get("id"))
            symbol = _text(item.get("symbol"))
            result.append(Price(asset=Asset(name=coin_id, symbol=symbol.upper()), value=value))
        return result