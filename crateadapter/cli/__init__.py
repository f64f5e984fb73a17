"""CLI module for the Crate remote storage adapter."""

from crateadapter.cli.main import app, main_cli

__all__ = [
    "app",
    "main_cli",
]
