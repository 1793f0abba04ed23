"""Price fetchers for Binance, CoinGecko, CryptoCompare, DefiLlama, GeckoTerminal and Kraken."""