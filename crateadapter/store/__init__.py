"""Access to the CrateDB SQL store."""

from crateadapter.store.transport import CrateTransport

__all__ = ["CrateTransport"]
