"""Resolve USD prices of trading pairs, routing through anchor currencies."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

# Quote currencies, ordered by how many pairs use them on the exchange.
ANCHORS = (
    "USDT", "USD", "BTC", "TRY", "USDC", "BNB", "ETH", "EUR", "IDR", "BRL",
    "JPY", "RUB", "GBP", "AUD", "USD1", "UAH", "PLN", "ARS", "DAI", "MXN",
    "RON", "DRT", "ZAR", "EURI", "USDP", "CZK", "NGN", "VAI", "BVND", "XRP",
    "SOL", "DOT", "COP", "DOGE", "TRX",
)


class PairNotFoundError(LookupError):
    """Raised when no price can be found or derived for a pair."""

    def __init__(self, pair: str) -> None:
        super().__init__(f"{pair}: price for pair not found")
        self.pair = pair


@dataclass(frozen=True)
class Pair:
    """A ticker entry: a pair symbol and its price as text."""

    price: str
    symbol: str


def get_price_for_pair(pair: str, prices: Mapping[str, float]) -> float:
    """Return the USDT price for ``pair``, deriving it via anchors if needed."""
    if pair == "USDUSDT":
        return 1.0
    if pair.endswith("USD"):
        pair += "T"
    if pair in prices:
        return prices[pair]

    base = ""
    anchor_assets: dict[str, set[str]] = {}
    for anchor in ANCHORS:
        if pair.endswith(anchor):
            base = pair[: -len(anchor)]
        assets = {symbol[: -len(anchor)] for symbol in prices if symbol.endswith(anchor)}
        if assets:
            anchor_assets[anchor] = assets

    if not base:
        raise PairNotFoundError(pair)

    for anchor, assets in anchor_assets.items():
        if base not in assets:
            continue
        base_in_anchor = get_price_for_pair(base + anchor, prices)
        if base_in_anchor == 0:
            continue
        return base_in_anchor * get_price_for_pair(anchor + "USDT", prices)

    raise PairNotFoundError(pair)


def pair_map(pairs: Iterable[Pair]) -> dict[str, float]:
    """Map each pair symbol to its price; unparsable prices become 0.0."""
    return {pair.symbol: _parse_price(pair.price) for pair in pairs}


def _parse_price(text: str) -> float:
    if text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0