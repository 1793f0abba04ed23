# hodlbook

Building blocks for tracking a crypto portfolio. The package looks up USD prices from several
public market data services and combines the results. It also includes the small pieces a
portfolio application needs around that: an in-memory cache, a background scheduler, an
in-process publish/subscribe channel, a SQLite connection wrapper and `.env` loading.

## Installation

```
pip install .
```

To also install the test tools:

```
pip install .[test]
```

## Prices

`hodlbook.types` holds the shared types. A `Price` holds an `Asset` (its `name` and `symbol`),
a USD `value`, and, for prices read from DEX pools, a `pool_address` and `network`. The
fetchers fill in those fields in place:

```python
from hodlbook.types import Asset, Price
from hodlbook.fetchers.kraken import KrakenPriceFetcher

price = Price(asset=Asset(name="Bitcoin", symbol="BTC"))
KrakenPriceFetcher().fetch(price)
print(price.value)
```

The fetchers all subclass `hodlbook.types.PriceFetcher`:

- `hodlbook.fetchers.binance.BinancePriceFetcher`
- `hodlbook.fetchers.coingecko.CoinGeckoPriceFetcher` (looks coins up by the lower-cased asset
  name; also has `fetch_all_pages(pages)`)
- `hodlbook.fetchers.cryptocompare.CryptoComparePriceFetcher` (takes an optional `api_key`)
- `hodlbook.fetchers.defillama.DefiLlamaPriceFetcher` (takes a `network` and an optional token
  `contract`)
- `hodlbook.fetchers.geckoterminal.GeckoTerminalPriceFetcher` (takes a `network`, default `eth`)
- `hodlbook.fetchers.kraken.KrakenPriceFetcher`

Each constructor also accepts `base_url` and `timeout` (default 10 seconds). Every fetcher has
the same three methods:

- `fetch(price)` looks up one price.
- `fetch_many(*prices)` looks up several prices together and leaves the ones it cannot find
  unchanged.
- `fetch_all()` returns a list of the prices the service publishes. The DefiLlama fetcher
  cannot list prices and always raises.

Apart from Binance's single-price `fetch`, the fetchers value USD, USDT and USDC at 1.0
without asking the service. A failed lookup raises `hodlbook.types.PriceFetchError`.

A few helpers are public as well: `hodlbook.fetchers.kraken.to_kraken_pair`,
`from_kraken_pair` and `is_usd_pair`; `hodlbook.fetchers.geckoterminal.extract_symbol` and
`is_pool_address`; and `hodlbook.fetchers.defillama.is_contract_address`.

### Combined lookups

`hodlbook.service.PriceService` tries Kraken first, then Binance, then CoinGecko. Its
`fetch_all()` merges the three lists and raises only when all three fail. Results are kept in
memory for one minute (`cache_ttl`, in seconds). The three fetchers can be passed in to the
constructor.

- `deep_search(query, name="", network="", providers=None)` asks each provider in turn and
  returns a list of `DeepSearchResult` for those that report a non-zero price. An empty query
  raises `ValueError`. When `network` is given and the query is a `0x` address, DefiLlama and
  GeckoTerminal look it up as a token or pool on that network.
- `hodlbook.service.available_deep_search_providers()` lists the providers `deep_search` uses
  by default.
- `fetch_by_source(source, price)` uses one named provider (`kraken`, `binance`, `coingecko`,
  `cryptocompare`, `defillama`, `geckoterminal`), or all three main sources for any other name.

`DeepSearchResult.as_dict()` gives a JSON-ready mapping that omits empty pool details.

### Pair pricing

`hodlbook.pairs.get_price_for_pair` works out a USDT price from a map of exchange pairs. When
no direct pair exists, it routes through common quote assets. It raises `PairNotFoundError`
when no route is found. `pair_map` turns a list of `Pair` entries into such a map.

```python
from hodlbook.pairs import get_price_for_pair

prices = {"BTCUSDT": 100000.0, "ETHBTC": 0.1}
get_price_for_pair("ETHUSD", prices)  # 10000.0
```

## Utilities

- `hodlbook.memcache.Cache` is a thread-safe key/value cache with `get`, `set`, `delete`,
  `keys`, `values`, `clear` and `len()`.
- `hodlbook.scheduler.Scheduler` runs a handler in a background thread, either every
  `interval` seconds (with an optional `initial_delay`) or once a day at a chosen UTC
  `target_hour`. It needs a handler, a positive interval, a logger and a `threading.Event`
  that stops it; otherwise it raises `InvalidSchedulerConfigError`. Handler exceptions are
  logged.
- `hodlbook.pubsub.PubSub` is an in-process publish/subscribe channel built on a
  `queue.Queue`. `publish` raises `PubSubCancelledError` once the cancel event is set;
  `subscribe` consumes messages with the handler in a background thread.
- `hodlbook.database.Database` opens a SQLite database (default `./data/hodlbook.db`),
  creating its directory and checking it is writable first. `get()` returns the
  `sqlite3.Connection`. It can be used as a context manager. Failures raise `DatabaseError`.
- `hodlbook.env.load_env(path=".env")` reads `KEY=VALUE` lines into the environment. It does
  not overwrite variables that are already set. `hodlbook.env.get_env(key, default)` reads a
  variable and falls back to the default when it is unset or empty.

## What the package does not do

This is a library only. It has no command-line program and no web server or HTTP API.
`Database` opens a connection but defines no tables, so storing assets, transactions,
exchanges or price history is left to the application.