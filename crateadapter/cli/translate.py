"""SQL translation CLI commands.

Print the statements the adapter would send to CrateDB, without contacting
it. Useful for checking how a selector or a batch is translated.
"""

import json
import math
import re
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from crateadapter.exceptions import CrateAdapterError
from crateadapter.translation import (
    LabelMatcher,
    MatchType,
    Query,
    Sample,
    TimeSeries,
    WriteBuilder,
    query_to_sql,
)

app = typer.Typer(
    name="translate",
    help="Show the SQL generated for remote reads and writes",
    add_completion=True,
)

console = Console()
console_err = Console(stderr=True)

_MATCHER = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(=~|!~|!=|=)\s*(.*?)\s*$")

_OPERATORS = {
    "=": MatchType.EQUAL,
    "!=": MatchType.NOT_EQUAL,
    "=~": MatchType.REGEX_MATCH,
    "!~": MatchType.REGEX_NO_MATCH,
}


def parse_matcher(text: str) -> LabelMatcher:
    """Parse ``name<op>value`` where op is one of ``=``, ``!=``, ``=~``, ``!~``.

    The value may be wrapped in double quotes (with backslash escapes, as in
    PromQL) or single quotes.

    Raises:
        typer.BadParameter: If the text is not a matcher
    """
    match = _MATCHER.match(text)
    if not match:
        raise typer.BadParameter(f"Not a label matcher: {text!r}")
    name, operator, value = match.groups()

    if len(value) >= 2 and value[0] == value[-1] == '"':
        try:
            value = json.loads(value)
        except ValueError as e:
            raise typer.BadParameter(f"Bad quoted value in {text!r}: {e}") from e
    elif len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1]

    return LabelMatcher(name=name, value=value, match_type=_OPERATORS[operator])


def _parse_value(value) -> float:
    if isinstance(value, str):
        spelled = {"nan": math.nan, "+inf": math.inf, "inf": math.inf, "-inf": -math.inf}
        if value.lower() in spelled:
            return spelled[value.lower()]
    return float(value)


def load_series(path: Path) -> list[TimeSeries]:
    """Load a batch from JSON.

    Format: ``[{"labels": {...}, "samples": [[timestamp_ms, value], ...]}]``.
    Values may be numbers or the strings ``NaN``, ``+Inf`` and ``-Inf``.
    """
    data = json.loads(path.read_text())
    return [
        TimeSeries(
            labels={str(k): str(v) for k, v in item.get("labels", {}).items()},
            samples=[
                Sample(timestamp_ms=int(ts), value=_parse_value(value))
                for ts, value in item.get("samples", [])
            ],
        )
        for item in data
    ]


@app.command("read")
def translate_read(
    ctx: typer.Context,
    matchers: List[str] = typer.Option(
        ...,
        "--match",
        "-m",
        help='Label matcher, e.g. __name__=up or job=~"api|web" (repeatable)',
    ),
    start: int = typer.Option(0, "--start", "-s", help="Start timestamp in ms"),
    end: int = typer.Option(..., "--end", "-e", help="End timestamp in ms"),
    table: Optional[str] = typer.Option(
        None, "--table", "-t", help="Table name (default from settings)"
    ),
) -> None:
    """Print the SELECT statement for a remote read query.

    Examples:
        crateadapter translate read -m __name__=up --end 2000

        crateadapter translate read -m 'job=~"api|web"' -m 'env!=' -s 0 -e 1000
    """
    state = ctx.find_root().obj
    table = table or state.settings.crate_table

    query = Query(
        matchers=[parse_matcher(m) for m in matchers],
        start_timestamp_ms=start,
        end_timestamp_ms=end,
    )
    try:
        statement = query_to_sql(query, table)
    except CrateAdapterError as e:
        console_err.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    if state.output_format == "json":
        console.print_json(json.dumps(statement.to_payload()))
    else:
        console.print(Syntax(statement.text, "sql", word_wrap=True))


@app.command("write")
def translate_write(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ...,
        help="JSON file with the series to write",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    table: Optional[str] = typer.Option(
        None, "--table", "-t", help="Table name (default from settings)"
    ),
) -> None:
    """Print the bulk INSERT for a batch of series read from a JSON file.

    Example:
        crateadapter translate write series.json
    """
    state = ctx.find_root().obj
    table = table or state.settings.crate_table

    try:
        series = load_series(file)
    except (ValueError, TypeError, AttributeError) as e:
        console_err.print(f"[red]Error:[/red] Invalid series file: {e}")
        raise typer.Exit(1)

    statement = WriteBuilder(table).build(series)

    if state.output_format == "json":
        console.print_json(json.dumps(statement.to_payload()))
        return

    console.print(Syntax(statement.text, "sql", word_wrap=True))
    if not statement.bulk_args:
        console.print("[yellow]No samples; nothing would be sent.[/yellow]")
        return

    result = Table(title=f"{statement.row_count} argument rows")
    for column in WriteBuilder.label_names(series):
        result.add_column(column)
    for column in ("value", "valueRaw", "timestamp"):
        result.add_column(column, justify="right")
    for row in statement.bulk_args:
        result.add_row(*("NULL" if cell is None else str(cell) for cell in row))
    console.print(result)
