"""Crypto price fetchers, pair pricing, caching, scheduling, pub/sub and SQLite helpers."""

__version__ = "0.2.0"