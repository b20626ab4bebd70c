"""``visionfetch fetch`` — download and print one day of trades."""

from __future__ import annotations

import argparse
import sys


def register(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("fetch", help="Fetch daily trades for a symbol")
    p.add_argument("symbol", help="Trading pair, e.g. BTCUSDT")
    p.add_argument("year", help="Year (YYYY)")
    p.add_argument("month", help="Month (1-12)")
    p.add_argument("day", help="Day (1-31)")
    p.add_argument(
        "--format",
        default="table",
        dest="fmt",
        choices=["table", "csv", "json", "parquet"],
        help="Output format (default: table)",
    )
    p.add_argument("--output", default=None, help="Write output to this file instead of stdout")
    p.add_argument("--limit", type=int, default=None, help="Only print the first N trades")
    p.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    p.add_argument("--summary", action="store_true", help="Print only symbol, date and trade count")
    p.set_defaults(handler=_handle)


def _handle(args: argparse.Namespace) -> int:
    from visionfetch.cli._config import resolve_config
    from visionfetch.cli._output import write_result
    from visionfetch.connector import TradesConnector
    from visionfetch.errors import ValidationError, VisionFetchError
    from visionfetch.validation import validate_date, validate_symbol

    try:
        symbol = validate_symbol(args.symbol.strip().upper())
        validate_date(args.year, args.month, args.day)
    except ValidationError as exc:
        print(f"error: {exc}")
        return 1

    config = resolve_config(args, timeout_s=args.timeout)

    with TradesConnector.from_config(config) as connector:
        try:
            result = connector.fetch(symbol, args.year, args.month, args.day)
        except VisionFetchError as exc:
            print(f"error: {exc}")
            return 2

    summary = f"{result.symbol} {result.date}: {result.trade_count} trades"
    if args.summary:
        print(summary)
        return 0

    # Keep stdout clean for csv/json output.
    print(summary, file=sys.stderr)

    write_result(result, fmt=args.fmt, output=args.output, limit=args.limit)
    return 0
