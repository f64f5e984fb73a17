"""Tests for the application factory."""

import logging

import pytest
import structlog

from crateadapter.api.app import create_app
from crateadapter.config import Settings


class TestLoggingSetup:
    """Test the factory configures logging the way worker processes need."""

    def test_log_level_from_environment(self, monkeypatch):
        """Test LOG_LEVEL and LOG_FORMAT apply to an app built from settings."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_FORMAT", "json")

        create_app()

        assert logging.getLogger().level == logging.WARNING
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_debug_events_dropped_above_debug(self):
        """Test debug events such as CrateDB requests are filtered out."""
        create_app(settings=Settings(log_level="INFO"))

        stdlib_logger = logging.getLogger("crateadapter.store.transport")
        event = {"event": "crate_request", "stmt": "INSERT INTO metrics ..."}

        with pytest.raises(structlog.DropEvent):
            structlog.stdlib.filter_by_level(stdlib_logger, "debug", event)

    def test_text_format(self):
        """Test the console renderer is used for the text format."""
        create_app(settings=Settings(log_format="text"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert structlog.stdlib.filter_by_level in processors
