"""Fetch façade: download a daily trades archive and parse it into a result."""

from __future__ import annotations

import logging
import time

import requests

from visionfetch.config import FetchConfig
from visionfetch.downloader import Downloader, FetchContext, build_session, normalize_date
from visionfetch.errors import VisionFetchError
from visionfetch.models import FetchResult
from visionfetch.parser import parse_archive

logger = logging.getLogger(__name__)


class TradesConnector:
    """Download and parse Binance Vision daily trades.

    The connector holds one HTTP session that is reused across fetches and may
    be shared between threads. Failures are never retried here.

    Example:
        with TradesConnector.from_config(load_config()) as connector:
            result = connector.fetch("BTCUSDT", 2024, 1, 1)
            print(result.trade_count)
    """

    def __init__(self, downloader: Downloader, *, max_workers: int | None = None):
        self.downloader = downloader
        self.max_workers = max_workers

    @classmethod
    def from_config(
        cls, config: FetchConfig | None = None, *, session: requests.Session | None = None
    ) -> TradesConnector:
        config = config or FetchConfig()
        if session is None:
            session = build_session(
                max_idle_connections=config.max_idle_connections,
                max_connections_per_host=config.max_connections_per_host,
            )
        return cls(Downloader.from_config(config, session), max_workers=config.max_workers)

    def fetch(
        self,
        symbol: str,
        year: int | str,
        month: int | str,
        day: int | str,
        *,
        context: FetchContext | None = None,
    ) -> FetchResult:
        """Fetch all trades for ``symbol`` on one day.

        Args:
            symbol: Exchange symbol, e.g. ``BTCUSDT``.
            year, month, day: Date components; month and day may be unpadded.
            context: Cancellation token/deadline. Defaults to the configured timeout.

        Raises:
            VisionFetchError: Any download or parse failure, tagged with symbol and date.
        """
        yyyy, mm, dd = normalize_date(year, month, day)
        trading_date = f"{yyyy}-{mm}-{dd}"

        started = time.perf_counter()
        try:
            payload = self.downloader.fetch(symbol, yyyy, mm, dd, context=context)
            trades = parse_archive(payload, max_workers=self.max_workers)
        except VisionFetchError as exc:
            exc.with_context(symbol=symbol, date=trading_date)
            raise

        result = FetchResult.build(symbol, trading_date, trades)
        logger.info(
            "Fetched %d trades for %s on %s in %.2fs",
            result.trade_count,
            symbol,
            trading_date,
            time.perf_counter() - started,
        )
        return result

    def close(self) -> None:
        self.downloader.session.close()

    def __enter__(self) -> TradesConnector:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
