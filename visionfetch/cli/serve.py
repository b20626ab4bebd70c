"""``visionfetch serve`` — run the HTTP service."""

from __future__ import annotations

import argparse


def register(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("serve", help="Run the HTTP download service")
    p.add_argument("--host", default=None, help="Bind address (default: config host)")
    p.add_argument("--port", type=int, default=None, help="Bind port (default: config port / PORT)")
    p.add_argument("--timeout", type=float, default=None, help="Per-request fetch timeout in seconds")
    p.set_defaults(handler=_handle)


def _handle(args: argparse.Namespace) -> int:
    import uvicorn

    from visionfetch.api import create_app
    from visionfetch.cli._config import resolve_config

    config = resolve_config(args, host=args.host, port=args.port, timeout_s=args.timeout)
    print(f"Serving on http://{config.host}:{config.port}")
    print("  GET /download?SYMBOL=<symbol>&YYYY=<year>&MM=<month>&DD=<day>")
    print("  GET /health")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level="info")
    return 0
