"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from visionfetch import __version__
from visionfetch.api.routes import health, trades
from visionfetch.config import FetchConfig
from visionfetch.connector import TradesConnector
from visionfetch.metrics import RequestMetrics

logger = logging.getLogger(__name__)


def create_app(
    config: FetchConfig | None = None,
    *,
    connector: TradesConnector | None = None,
    metrics: RequestMetrics | None = None,
) -> FastAPI:
    """Build the service; the connector's session is closed on shutdown."""
    config = config or FetchConfig()
    connector = connector or TradesConnector.from_config(config)
    metrics = metrics or RequestMetrics()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        logger.info(
            "visionfetch service starting (timeout=%.1fs, max_conns_per_host=%d, max_idle_conns=%d)",
            config.timeout_s,
            config.max_connections_per_host,
            config.max_idle_connections,
        )
        yield
        logger.info("visionfetch service shutting down")
        connector.close()

    app = FastAPI(title="visionfetch", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.connector = connector
    app.state.metrics = metrics

    app.include_router(trades.router, tags=["Trades"])
    app.include_router(health.router, tags=["Health"])
    return app
