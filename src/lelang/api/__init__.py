"""HTTP API for Lelang."""

from lelang.api.app import create_app

__all__ = ["create_app"]
