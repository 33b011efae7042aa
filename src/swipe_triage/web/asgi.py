"""Module-level ASGI application built from environment settings."""

from .app import create_app

app = create_app()

__all__ = ["app"]
