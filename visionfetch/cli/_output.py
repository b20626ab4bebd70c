"""Render a fetch result for the ``fetch`` command."""

from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path

from visionfetch.models import FetchResult


def write_result(
    result: FetchResult,
    *,
    fmt: str = "table",
    output: str | Path | None = None,
    limit: int | None = None,
) -> None:
    """Write ``result`` to stdout or to ``output``.

    ``json`` is the same document ``GET /download`` serves; ``table``, ``csv``
    and ``parquet`` render the typed trades frame. ``limit`` keeps the first N
    trades, and ``trade_count`` follows the trades actually written.
    """
    if limit is not None:
        result = dataclasses.replace(result, trades=result.trades[:limit])

    if fmt == "parquet":
        if output is None:
            raise SystemExit("error: --output required for parquet format")
        result.to_frame().write_parquet(output)
        print(f"Wrote {result.trade_count} trades to {output}", file=sys.stderr)
        return

    if fmt == "json":
        text = json.dumps(result.to_dict(), indent=2) + "\n"
    elif fmt == "csv":
        text = result.to_frame().write_csv()
    elif fmt == "table":
        text = f"{result.to_frame()}\n"
    else:
        raise SystemExit(f"error: unknown format '{fmt}'")

    if output is None:
        sys.stdout.write(text)
    else:
        Path(output).write_text(text)
