"""Trade record and fetch result models.

Example:
    from visionfetch.models import TradeRecord, FetchResult

    trade = TradeRecord(1, 42000.0, 0.5, 21000.0, 1704067200000, True, True)
    result = FetchResult(symbol="BTCUSDT", date="2024-01-01", trades=(trade,))
    df = result.to_frame()
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import polars as pl

# Column order mirrors the Binance Vision trades CSV layout.
TRADES_SCHEMA: dict[str, pl.DataType] = {
    "trade_id": pl.Int64,
    "price": pl.Float64,
    "quantity": pl.Float64,
    "quote_quantity": pl.Float64,
    "timestamp": pl.Int64,
    "is_buyer_maker": pl.Boolean,
    "is_best_match": pl.Boolean,
}


@dataclass(frozen=True)
class TradeRecord:
    id: int
    price: float
    quantity: float
    quote_quantity: float
    timestamp_ms: int
    is_buyer_maker: bool
    is_best_match: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_id": self.id,
            "price": self.price,
            "quantity": self.quantity,
            "quote_quantity": self.quote_quantity,
            "timestamp": self.timestamp_ms,
            "is_buyer_maker": self.is_buyer_maker,
            "is_best_match": self.is_best_match,
        }


@dataclass(frozen=True)
class FetchResult:
    """Trades fetched for one symbol and trading day.

    ``trades`` keeps row order within each archive member; the order across
    members depends on which parsing worker finished first.
    """

    symbol: str
    date: str
    trades: tuple[TradeRecord, ...]

    @classmethod
    def build(cls, symbol: str, date: str, trades: Iterable[TradeRecord]) -> FetchResult:
        return cls(symbol=symbol, date=date, trades=tuple(trades))

    @property
    def trade_count(self) -> int:
        return len(self.trades)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form served by ``GET /download``."""
        return {
            "symbol": self.symbol,
            "date": self.date,
            "trade_count": self.trade_count,
            "trades": [trade.to_dict() for trade in self.trades],
        }

    def to_frame(self) -> pl.DataFrame:
        """Return trades as a typed Polars DataFrame (empty frame keeps the schema)."""
        columns: dict[str, list[Any]] = {name: [] for name in TRADES_SCHEMA}
        for trade in self.trades:
            columns["trade_id"].append(trade.id)
            columns["price"].append(trade.price)
            columns["quantity"].append(trade.quantity)
            columns["quote_quantity"].append(trade.quote_quantity)
            columns["timestamp"].append(trade.timestamp_ms)
            columns["is_buyer_maker"].append(trade.is_buyer_maker)
            columns["is_best_match"].append(trade.is_best_match)
        return pl.DataFrame(columns, schema=TRADES_SCHEMA)
