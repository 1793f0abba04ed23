[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hodlbook"
version = "0.2.0"
description = "Crypto portfolio price tooling: multi-source price fetchers, pair pricing, caching, scheduling and SQLite access"
requires-python = ">=3.10"
keywords = ["crypto", "portfolio", "prices", "binance", "kraken", "coingecko", "defillama"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["hodlbook"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
