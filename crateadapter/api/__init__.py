"""HTTP API of the Crate remote storage adapter."""

from crateadapter.api.app import create_app

__all__ = ["create_app"]
