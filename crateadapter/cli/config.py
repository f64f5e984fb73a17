"""Configuration CLI commands."""

import json
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from crateadapter.config import CONFIG_SECTIONS, Settings, default_config_path

app = typer.Typer(help="Configuration management")
console = Console()
console_err = Console(stderr=True)


def _section_table(name: str, values: dict) -> Table:
    table = Table(title=name, show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, str(value))
    return table


@app.command("show")
def show_config(
    ctx: typer.Context,
    section: Optional[str] = typer.Option(
        None,
        "--section",
        "-s",
        help=f"Show one section: {', '.join(CONFIG_SECTIONS)}",
    ),
) -> None:
    """Show the effective configuration.

    Credentials in the CrateDB URL are masked.
    """
    state = ctx.find_root().obj
    sections = state.settings.to_sections(redact=True)

    if section:
        if section not in sections:
            console_err.print(f"[red]Error:[/red] Unknown section: {section}")
            console_err.print(f"Available sections: {', '.join(sections)}")
            raise typer.Exit(1)
        sections = {section: sections[section]}

    if state.output_format == "json":
        console.print_json(json.dumps(sections))
        return

    for name, values in sections.items():
        console.print(_section_table(name, values))


@app.command("init")
def init_config(
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        "-p",
        help="Where to write the file (default: ~/.crateadapter/config.yaml)",
        dir_okay=False,
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing file"
    ),
) -> None:
    """Write a config file holding the default settings.

    Example:
        crateadapter config init
        crateadapter config init --path ./adapter.yaml
    """
    path = path or default_config_path()
    if path.exists() and not force:
        console_err.print(
            f"[red]Error:[/red] {path} already exists (use --force to overwrite)"
        )
        raise typer.Exit(1)

    defaults = Settings.model_construct().to_sections()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(defaults, sort_keys=False))
    console.print(f"[green]Wrote default configuration to {path}[/green]")
