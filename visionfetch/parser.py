"""Binance Vision trades archive parser.

Archives are opened from memory; each CSV member is decoded row by row on its
own worker thread and the per-member results are merged once the worker is
done with its rows.

Expected CSV layout (the header row may be absent):
TradeId,Price,Quantity,QuoteQuantity,Timestamp,IsBuyerMaker,IsBestMatch
"""

from __future__ import annotations

import csv
import io
import logging
import re
import threading
import zipfile
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import IO

from visionfetch.errors import ArchiveFormatError, MemberParseError, NoCsvMembersError
from visionfetch.models import TradeRecord

logger = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"
TRADE_FIELD_COUNT = 7
HEADER_ID_NAMES = frozenset({"TradeId", "trade_id"})
MAX_DEFAULT_WORKERS = 32

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_TRUE_TOKENS = frozenset({"true", "1", "t"})
_FALSE_TOKENS = frozenset({"false", "0", "f"})

# ASCII-only forms; int() and float() would also take "1_000", padding and
# non-ASCII digits.
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)

ArchiveMember = tuple[str, zipfile.ZipInfo]


def parse_bool(value: str) -> bool:
    """Parse ``true``/``false``, ``1``/``0`` or ``t``/``f`` (case-insensitive)."""
    token = value.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def _parse_int64(value: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid integer: {value!r}")
    parsed = int(value)
    if not _INT64_MIN <= parsed <= _INT64_MAX:
        raise ValueError(f"integer out of 64-bit range: {value!r}")
    return parsed


def _parse_float(value: str) -> float:
    if not _FLOAT_RE.fullmatch(value):
        raise ValueError(f"invalid number: {value!r}")
    return float(value)


def _is_numeric(value: str) -> bool:
    return _FLOAT_RE.fullmatch(value) is not None


def is_header_row(row: Sequence[str]) -> bool:
    """Return True when ``row`` looks like the CSV header.

    A row counts as a header if its first field is a known id column name or is
    not numeric at all. Only ever applied to the first row of a member.
    """
    if not row:
        return False
    first = row[0].strip()
    return first in HEADER_ID_NAMES or not _is_numeric(first)


def parse_trade_row(row: Sequence[str]) -> TradeRecord:
    """Convert one CSV row into a :class:`TradeRecord`.

    Raises:
        ValueError: If the row has fewer than 7 fields or a field fails conversion.
    """
    if len(row) < TRADE_FIELD_COUNT:
        raise ValueError(f"expected {TRADE_FIELD_COUNT} fields, got {len(row)}")
    return TradeRecord(
        id=_parse_int64(row[0]),
        price=_parse_float(row[1]),
        quantity=_parse_float(row[2]),
        quote_quantity=_parse_float(row[3]),
        timestamp_ms=_parse_int64(row[4]),
        is_buyer_maker=parse_bool(row[5]),
        is_best_match=parse_bool(row[6]),
    )


def iter_trade_rows(lines: Iterable[str], *, source: str = "<stream>") -> Iterator[TradeRecord]:
    """Lazily decode trades from CSV text lines.

    The first row is dropped when it looks like a header. Short or malformed
    rows are skipped; their count is logged once the stream is exhausted.
    """
    reader = csv.reader(lines)
    skipped = 0
    first = True
    for row in reader:
        if first:
            first = False
            if is_header_row(row):
                continue
        if not row:
            continue
        try:
            yield parse_trade_row(row)
        except ValueError:
            skipped += 1
    if skipped:
        logger.debug("Skipped %d malformed rows in %s", skipped, source)


def _open_text(raw: IO[bytes]) -> io.TextIOWrapper:
    # Undecodable bytes become U+FFFD, so the row fails conversion and is dropped.
    return io.TextIOWrapper(raw, encoding="utf-8-sig", errors="replace", newline="")


def list_csv_members(archive: zipfile.ZipFile) -> list[ArchiveMember]:
    """Return ``(name, info)`` for every non-directory member ending in ``.csv``."""
    return [
        (info.filename, info)
        for info in archive.infolist()
        if not info.is_dir() and info.filename.endswith(CSV_SUFFIX)
    ]


def _parse_member(archive_bytes: bytes, member: ArchiveMember) -> list[TradeRecord]:
    name, info = member
    # ZipFile handles are not safe to share across threads; each worker opens its own.
    with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
        with archive.open(info) as raw, _open_text(raw) as text:
            trades = list(iter_trade_rows(text, source=name))
    logger.debug("Parsed %d trades from %s", len(trades), name)
    return trades


def parse_archive(archive_bytes: bytes, *, max_workers: int | None = None) -> list[TradeRecord]:
    """Parse every CSV member of a zip archive into trade records.

    Members are parsed concurrently, one task per member. Within a member the
    input row order is kept; the order across members is not defined.

    Args:
        archive_bytes: Raw zip archive.
        max_workers: Thread cap. Defaults to one thread per member (at most 32).

    Raises:
        ArchiveFormatError: If the bytes are not a zip archive.
        NoCsvMembersError: If the archive has no CSV members.
        MemberParseError: If any member could not be read; lists every failed member.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
            members = list_csv_members(archive)
    except zipfile.BadZipFile as exc:
        raise ArchiveFormatError(f"not a valid zip archive: {exc}") from exc

    if not members:
        raise NoCsvMembersError("no CSV files found in the archive")

    workers = max_workers or min(len(members), MAX_DEFAULT_WORKERS)
    trades: list[TradeRecord] = []
    failures: list[tuple[str, BaseException]] = []
    lock = threading.Lock()

    def _run(member: ArchiveMember) -> None:
        try:
            parsed = _parse_member(archive_bytes, member)
        except Exception as exc:
            with lock:
                failures.append((member[0], exc))
            return
        with lock:
            trades.extend(parsed)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="visionfetch-parse") as pool:
        futures = [pool.submit(_run, member) for member in members]
        for future in futures:
            future.result()

    if failures:
        failures.sort(key=lambda item: item[0])
        raise MemberParseError(failures)

    logger.debug("Parsed %d trades from %d members", len(trades), len(members))
    return trades
