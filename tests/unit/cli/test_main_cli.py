"""Tests for the main CLI entry point."""

import os
from unittest.mock import patch

from typer.testing import CliRunner

from crateadapter import __version__
from crateadapter.cli import app

runner = CliRunner()


class TestMainCallback:
    """Test global options."""

    def test_version(self):
        """Test --version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_output_format(self):
        """Test an unknown output format is rejected."""
        result = runner.invoke(app, ["-o", "xml", "translate", "read", "-m", "a=b", "-e", "1"])

        assert result.exit_code == 1

    def test_config_file(self, tmp_path):
        """Test settings are loaded from the given config file."""
        config = tmp_path / "config.yaml"
        config.write_text("crate:\n  table: from_yaml\n")

        result = runner.invoke(
            app,
            ["-c", str(config), "-o", "json", "translate", "read", "-m", "a=b", "-e", "1"],
        )

        assert result.exit_code == 0, result.output
        assert "FROM from_yaml" in result.output


class TestServe:
    """Test `api serve`."""

    def test_serve_uses_settings(self, monkeypatch):
        """Test uvicorn is started with the app and configured address."""
        monkeypatch.setenv("ADAPTER_PORT", "9999")

        with patch("uvicorn.run") as run:
            result = runner.invoke(app, ["api", "serve", "--host", "127.0.0.1"])

        assert result.exit_code == 0, result.output
        kwargs = run.call_args.kwargs
        assert kwargs["app"] == "crateadapter.api.app:app"
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9999
        assert kwargs["workers"] == 1

    def test_serve_crate_url_override(self, monkeypatch):
        """Test --crate-url is passed to workers through the environment."""
        monkeypatch.setenv("CRATE_URL", "http://placeholder:4200/_sql")

        with patch("uvicorn.run"):
            result = runner.invoke(
                app, ["api", "serve", "--crate-url", "http://crate:4200/_sql"]
            )

        assert result.exit_code == 0, result.output
        assert "http://crate:4200/_sql" in result.output

    def test_serve_verbose_reaches_workers(self):
        """Test --verbose is exported so worker processes log at debug."""
        with patch("uvicorn.run") as run:
            result = runner.invoke(app, ["-v", "api", "serve"])

        assert result.exit_code == 0, result.output
        assert os.environ["LOG_LEVEL"] == "DEBUG"
        assert run.call_args.kwargs["log_level"] == "debug"
