"""Trades download route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request

from visionfetch.api.routes._envelope import failure, success
from visionfetch.downloader import FetchContext
from visionfetch.errors import ValidationError, VisionFetchError
from visionfetch.validation import validate_date, validate_symbol

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/download")
def download_trades(
    request: Request,
    symbol: str = Query("", alias="SYMBOL"),
    year: str = Query("", alias="YYYY"),
    month: str = Query("", alias="MM"),
    day: str = Query("", alias="DD"),
):
    """Download and parse one day of trades.

    Declared ``def`` so FastAPI runs the blocking fetch in its threadpool.
    """
    state = request.app.state
    metrics = state.metrics

    with metrics.track():
        symbol, year, month, day = (v.strip() for v in (symbol, year, month, day))
        if not (symbol and year and month and day):
            metrics.record_failure()
            return failure(400, "Missing required parameters: SYMBOL, YYYY, MM, DD")

        # Lower-case symbols are rejected rather than normalized.
        try:
            validate_symbol(symbol)
            validate_date(year, month, day)
        except ValidationError as exc:
            metrics.record_failure()
            return failure(400, str(exc))

        context = FetchContext.with_timeout(state.config.timeout_s)
        try:
            result = state.connector.fetch(symbol, year, month, day, context=context)
        except VisionFetchError as exc:
            metrics.record_failure()
            logger.error("Error downloading and parsing trades: %s", exc)
            return failure(500, f"Failed to download and parse trades: {exc}")

        metrics.record_success()
        return success(
            result.to_dict(),
            message=(
                f"Successfully downloaded and parsed {result.trade_count} trades "
                f"for {result.symbol} on {result.date}"
            ),
        )
