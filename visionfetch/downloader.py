"""Binance Vision daily trades archive downloader."""

from __future__ import annotations

import contextlib
import logging
import socket
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from functools import partial

import requests
from requests.adapters import HTTPAdapter

from visionfetch import __version__
from visionfetch.config import BINANCE_VISION_BASE_URL, DEFAULT_MAX_RESPONSE_BYTES, FetchConfig
from visionfetch.errors import (
    DownloadError,
    EmptyArchiveError,
    FetchCancelledError,
    FetchTimeoutError,
    HTTPStatusError,
    ResponseTooLargeError,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"visionfetch/{__version__}"
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class FetchContext:
    """Cancellation token and optional deadline for one fetch.

    ``deadline`` is a ``time.monotonic()`` value. Callbacks registered with
    :meth:`on_cancel` run once, on the thread that calls :meth:`cancel` or
    :meth:`expire`; the downloader uses them to abort a response whose read is
    blocked.
    """

    deadline: float | None = None
    _event: threading.Event = field(default_factory=threading.Event, repr=False)
    _expired: threading.Event = field(default_factory=threading.Event, repr=False)
    _callbacks: list[Callable[[], None]] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def with_timeout(cls, timeout_s: float | None) -> FetchContext:
        if timeout_s is None:
            return cls()
        return cls(deadline=time.monotonic() + timeout_s)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        if self._expired.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self) -> None:
        self._trigger(self._event)

    def expire(self) -> None:
        """Mark the deadline as reached and run the registered callbacks."""
        self._trigger(self._expired)

    def _trigger(self, flag: threading.Event) -> None:
        with self._lock:
            if flag.is_set():
                return
            flag.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.debug("Cancel callback %r failed", callback, exc_info=True)

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it.

        The callback runs immediately when the context is already cancelled or
        expired.
        """
        with self._lock:
            if not (self._event.is_set() or self._expired.is_set()):
                self._callbacks.append(callback)

                def _unregister() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _unregister
        callback()
        return lambda: None

    def check(self, url: str) -> None:
        """Raise if the fetch was cancelled or its deadline elapsed."""
        if self.cancelled:
            raise FetchCancelledError(f"download of {url} was cancelled", url=url)
        if self.expired:
            raise FetchTimeoutError(f"deadline exceeded while downloading {url}", url=url)


def normalize_date(year: int | str, month: int | str, day: int | str) -> tuple[str, str, str]:
    """Zero-pad date components to ``YYYY``, ``MM`` and ``DD``."""
    return str(year).strip().zfill(4), str(month).strip().zfill(2), str(day).strip().zfill(2)


def build_archive_url(
    symbol: str,
    year: int | str,
    month: int | str,
    day: int | str,
    *,
    base_url: str = BINANCE_VISION_BASE_URL,
) -> str:
    yyyy, mm, dd = normalize_date(year, month, day)
    filename = f"{symbol}-trades-{yyyy}-{mm}-{dd}.zip"
    return f"{base_url.rstrip('/')}/data/spot/daily/trades/{symbol}/{filename}"


def build_session(
    *,
    max_idle_connections: int = 100,
    max_connections_per_host: int = 10,
) -> requests.Session:
    """Create a keep-alive session with bounded connection pools and no retries."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=max_idle_connections,
        pool_maxsize=max_connections_per_host,
        max_retries=0,
        pool_block=False,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session


def _abort_response(response: requests.Response) -> None:
    # Closing the response does not wake a recv blocked on another thread;
    # shutting the socket down does.
    connection = getattr(getattr(response, "raw", None), "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        response.close()
        return
    with contextlib.suppress(OSError):
        sock.shutdown(socket.SHUT_RDWR)


def _start_watchdog(context: FetchContext) -> threading.Timer | None:
    remaining = context.remaining()
    if remaining is None:
        return None
    timer = threading.Timer(remaining, context.expire)
    timer.daemon = True
    timer.start()
    return timer


class Downloader:
    """Fetch daily trade archives into memory, bounded in size and time."""

    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: str = BINANCE_VISION_BASE_URL,
        timeout_s: float = 30.0,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.session = session
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.max_response_bytes = max_response_bytes
        self.chunk_size = chunk_size

    @classmethod
    def from_config(cls, config: FetchConfig, session: requests.Session | None = None) -> Downloader:
        if session is None:
            session = build_session(
                max_idle_connections=config.max_idle_connections,
                max_connections_per_host=config.max_connections_per_host,
            )
        return cls(
            session,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            max_response_bytes=config.max_response_bytes,
        )

    def archive_url(self, symbol: str, year: int | str, month: int | str, day: int | str) -> str:
        return build_archive_url(symbol, year, month, day, base_url=self.base_url)

    def fetch(
        self,
        symbol: str,
        year: int | str,
        month: int | str,
        day: int | str,
        *,
        context: FetchContext | None = None,
    ) -> bytes:
        """Download the trades archive for ``symbol`` on the given day."""
        return self.fetch_url(self.archive_url(symbol, year, month, day), context=context)

    def fetch_url(self, url: str, *, context: FetchContext | None = None) -> bytes:
        if context is None:
            context = FetchContext.with_timeout(self.timeout_s)
        context.check(url)

        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, stream=True, timeout=self._request_timeout(context))
        except requests.Timeout as exc:
            raise FetchTimeoutError(f"timed out requesting {url}: {exc}", url=url) from exc
        except requests.RequestException as exc:
            context.check(url)
            raise DownloadError(f"failed to download {url}: {exc}", url=url) from exc

        with response:
            context.check(url)
            unregister = context.on_cancel(partial(_abort_response, response))
            watchdog = _start_watchdog(context)
            try:
                payload = self._read_body(response, url, context)
            finally:
                unregister()
                if watchdog is not None:
                    watchdog.cancel()

        if not payload:
            raise EmptyArchiveError(f"downloaded archive is empty: {url}", url=url)
        logger.debug("Downloaded %d bytes from %s", len(payload), url)
        return payload

    def _request_timeout(self, context: FetchContext) -> float:
        remaining = context.remaining()
        if remaining is None:
            return self.timeout_s
        return max(min(self.timeout_s, remaining), 0.001)

    def _read_body(self, response: requests.Response, url: str, context: FetchContext) -> bytes:
        if response.status_code != 200:
            raise HTTPStatusError(response.status_code, url=url)

        limit = self.max_response_bytes
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > limit:
            raise ResponseTooLargeError(limit, url=url)

        buffer = bytearray()
        try:
            for chunk in self._iter_body(response):
                context.check(url)
                if not chunk:
                    continue
                if len(buffer) + len(chunk) > limit:
                    raise ResponseTooLargeError(limit, url=url)
                buffer.extend(chunk)
        except DownloadError:
            raise
        except requests.Timeout as exc:
            context.check(url)
            raise FetchTimeoutError(f"timed out reading {url}: {exc}", url=url) from exc
        except Exception as exc:
            # An abort shuts the socket down underneath a blocked read.
            context.check(url)
            raise DownloadError(f"failed to read archive from {url}: {exc}", url=url) from exc
        # An abort can also end the stream cleanly; never return a partial body.
        context.check(url)
        return bytes(buffer)

    def _iter_body(self, response: requests.Response) -> Iterator[bytes]:
        """Yield body bytes as they arrive.

        ``read1`` returns after at most one socket read, so a slow sender
        cannot hold a read open until a whole chunk has filled.
        """
        read1 = getattr(getattr(response, "raw", None), "read1", None)
        if read1 is None:
            yield from response.iter_content(chunk_size=self.chunk_size)
            return
        while True:
            chunk = read1(self.chunk_size, decode_content=True)
            if not chunk:
                return
            yield chunk
