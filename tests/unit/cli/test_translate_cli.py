"""Tests for the translate CLI commands."""

import json

import pytest
import typer
from typer.testing import CliRunner

from crateadapter.cli import app
from crateadapter.cli.translate import load_series, parse_matcher
from crateadapter.translation import MatchType

runner = CliRunner()


class TestParseMatcher:
    """Test matcher parsing from the command line."""

    @pytest.mark.parametrize(
        "text,name,value,match_type",
        [
            ("__name__=up", "__name__", "up", MatchType.EQUAL),
            ("job!=api", "job", "api", MatchType.NOT_EQUAL),
            ('job=~"api|web"', "job", "api|web", MatchType.REGEX_MATCH),
            ("job!~'a.*'", "job", "a.*", MatchType.REGEX_NO_MATCH),
            ("env=", "env", "", MatchType.EQUAL),
            ('path="a\\"b"', "path", 'a"b', MatchType.EQUAL),
        ],
    )
    def test_valid(self, text, name, value, match_type):
        """Test the supported operators and quoting styles."""
        matcher = parse_matcher(text)
        assert (matcher.name, matcher.value, matcher.match_type) == (
            name,
            value,
            match_type,
        )

    @pytest.mark.parametrize("text", ["up", "=up", "1job=x"])
    def test_invalid(self, text):
        """Test text without a label name and operator is rejected."""
        with pytest.raises(typer.BadParameter):
            parse_matcher(text)


class TestTranslateRead:
    """Test `translate read`."""

    def test_json_output(self):
        """Test the JSON payload for a simple selector."""
        result = runner.invoke(
            app,
            [
                "-o",
                "json",
                "translate",
                "read",
                "-m",
                "__name__=up",
                "--start",
                "1000",
                "--end",
                "2000",
            ],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "stmt": (
                "SELECT * FROM metrics WHERE (\"l__name__\" = 'up') "
                "AND (timestamp <= 2000) AND (timestamp >= 1000) ORDER BY timestamp"
            )
        }

    def test_table_option(self):
        """Test the table can be overridden."""
        result = runner.invoke(
            app,
            ["-o", "json", "translate", "read", "-m", "a=b", "-e", "1", "-t", "other"],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["stmt"].startswith("SELECT * FROM other ")

    def test_invalid_regex(self):
        """Test an invalid regex exits with an error."""
        result = runner.invoke(
            app, ["translate", "read", "-m", 'job=~"("', "--end", "1"]
        )

        assert result.exit_code == 1


class TestTranslateWrite:
    """Test `translate write`."""

    @pytest.fixture
    def series_file(self, tmp_path):
        path = tmp_path / "series.json"
        path.write_text(
            json.dumps(
                [
                    {"labels": {"__name__": "up", "job": "api"}, "samples": [[1000, 1]]},
                    {"labels": {"__name__": "up"}, "samples": [[1000, "NaN"]]},
                ]
            )
        )
        return path

    def test_load_series(self, series_file):
        """Test the batch file format."""
        series = load_series(series_file)

        assert [s.labels for s in series] == [
            {"__name__": "up", "job": "api"},
            {"__name__": "up"},
        ]
        assert series[0].samples[0].value == 1.0

    def test_json_output(self, series_file):
        """Test the JSON payload of a batch."""
        result = runner.invoke(app, ["-o", "json", "translate", "write", str(series_file)])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["stmt"] == (
            'INSERT INTO metrics ("l__name__", "ljob", "value", "valueRaw", '
            '"timestamp") VALUES (?, ?, ?, ?, ?)'
        )
        assert [row[:3] for row in payload["bulk_args"]] == [
            ["up", "api", "1.000000"],
            ["up", None, "NaN"],
        ]

    def test_table_output(self, series_file):
        """Test the human readable output."""
        result = runner.invoke(app, ["translate", "write", str(series_file)])

        assert result.exit_code == 0, result.output
        assert "INSERT INTO metrics" in result.output
        assert "2 argument rows" in result.output

    def test_invalid_file(self, tmp_path):
        """Test a file that is not a batch exits with an error."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["translate", "write", str(path)])

        assert result.exit_code == 1
