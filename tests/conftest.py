"""Shared pytest fixtures."""

import logging

import pytest

import crateadapter.config


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and environment."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "CRATE_URL",
        "CRATE_TABLE",
        "CRATE_TIMEOUT_SECONDS",
        "ADAPTER_HOST",
        "ADAPTER_PORT",
        "ADAPTER_WORKERS",
        "MAX_REQUEST_SIZE_MB",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "CRATEADAPTER_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    root_level = logging.getLogger().level
    crateadapter.config.reset_settings()
    yield
    crateadapter.config.reset_settings()
    logging.getLogger().setLevel(root_level)
