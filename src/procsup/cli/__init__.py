"""Utilities used by the procsup CLI."""

from ._app import app, create_app, main

__all__ = ["app", "create_app", "main"]
