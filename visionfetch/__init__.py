"""Binance Vision daily trades fetcher."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from visionfetch.downloader import FetchContext
    from visionfetch.models import FetchResult

__version__ = "0.1.0"


def fetch_trades(
    symbol: str,
    year: int | str,
    month: int | str,
    day: int | str,
    *,
    context: FetchContext | None = None,
) -> FetchResult:
    """One-shot fetch with the resolved default configuration.

    Opens a connector, runs ``TradesConnector.fetch`` and closes the session.
    """
    from visionfetch.config import load_config
    from visionfetch.connector import TradesConnector

    with TradesConnector.from_config(load_config()) as connector:
        return connector.fetch(symbol, year, month, day, context=context)


__all__ = ["__version__", "fetch_trades"]
