"""Main CLI entry point for the Crate remote storage adapter."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from crateadapter import __version__
from crateadapter.config import Settings, get_settings
from crateadapter.exceptions import CrateAdapterError
from crateadapter.logging_config import setup_logging

OUTPUT_FORMATS = ("table", "json")

app = typer.Typer(
    name="crateadapter",
    help="Prometheus remote read/write adapter for CrateDB",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=False,
)

console = Console()
console_err = Console(stderr=True)


@dataclass
class CLIState:
    """Options shared by every command, available as ``ctx.obj``."""

    output_format: str = "table"
    verbose: bool = False
    settings: Optional[Settings] = None
    config_path: Optional[Path] = None


def version_callback(value: bool) -> None:
    if value:
        console.print(f"crateadapter version: {__version__}")
        console.print(f"Python: {sys.version.split()[0]}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version information and exit",
        callback=version_callback,
        is_eager=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML config file (default: ~/.crateadapter/config.yaml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    output: str = typer.Option(
        "table",
        "--output",
        "-o",
        help="Output format: table, json",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log at DEBUG level, including the SQL sent to CrateDB",
    ),
) -> None:
    """
    Crate remote storage adapter

    Stores Prometheus samples in CrateDB via remote write and serves them
    back via remote read.
    """
    if output not in OUTPUT_FORMATS:
        console_err.print(f"[red]Error:[/red] Invalid output format: {output}")
        console_err.print(f"Valid formats: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(1)

    settings = get_settings(config_path=config, reload=config is not None)
    if verbose:
        settings.log_level = "DEBUG"
    setup_logging(settings)

    ctx.obj = CLIState(
        output_format=output, verbose=verbose, settings=settings, config_path=config
    )


def report_error(error: CrateAdapterError, verbose: bool = False) -> None:
    """Print an adapter error, with its context when verbose."""
    console_err.print(f"\n[red]Error:[/red] {error.message}")
    if verbose and error.context:
        console_err.print("\n[yellow]Context:[/yellow]")
        for key, value in error.context.items():
            console_err.print(f"  {key}: {value}")


from crateadapter.cli import api, config as config_commands, translate  # noqa: E402

app.add_typer(api.app, name="api", help="API server management")
app.add_typer(config_commands.app, name="config", help="Show or create configuration")
app.add_typer(translate.app, name="translate", help="Show generated SQL")


def main_cli() -> None:
    """Entry point for CLI application with error handling."""
    try:
        app()
    except CrateAdapterError as e:
        report_error(e, verbose="-v" in sys.argv or "--verbose" in sys.argv)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
