"""HTTP service exposing the trades connector."""

from visionfetch.api.app import create_app

__all__ = ["create_app"]
