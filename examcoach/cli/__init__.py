"""Command line interface."""

from examcoach.cli.main import app, main

__all__ = ["app", "main"]
