"""API server CLI commands."""

import json
import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from crateadapter.config import CONFIG_PATH_ENV, get_settings, redact_url

app = typer.Typer(
    name="api",
    help="API server management commands",
    add_completion=True,
)

console = Console()
console_err = Console(stderr=True)

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _export_overrides(**overrides: Optional[str]) -> None:
    # Workers import the app by name and build their settings from the
    # environment, so overrides have to be exported there.
    for name, value in overrides.items():
        if value is not None:
            os.environ[name.upper()] = value


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(
        None, "--host", "-h", help="Bind address (default from settings: 0.0.0.0)"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Port (default from settings: 9268)"
    ),
    crate_url: Optional[str] = typer.Option(
        None,
        "--crate-url",
        help="CrateDB SQL endpoint (default from settings: http://localhost:4200/_sql)",
    ),
    crate_table: Optional[str] = typer.Option(
        None, "--table", "-t", help="Table holding the samples (default: metrics)"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", help="Number of worker processes"
    ),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Restart on code changes (single worker)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l", help=f"Logging level: {', '.join(LOG_LEVELS)}"
    ),
    access_log: bool = typer.Option(
        True, "--access-log/--no-access-log", help="Enable/disable access logging"
    ),
) -> None:
    """Start the adapter API server.

    Point Prometheus' remote_write and remote_read at /write and /read.

    Examples:
        crateadapter api serve

        crateadapter api serve --port 9268 --crate-url http://crate:4200/_sql

        crateadapter api serve --workers 4
    """
    import uvicorn

    if log_level is not None and log_level.lower() not in LOG_LEVELS:
        console_err.print(f"[red]Error:[/red] Invalid log level: {log_level}")
        raise typer.Exit(1)

    state = ctx.find_root().obj
    if log_level is None and state.verbose:
        log_level = "debug"
    _export_overrides(
        crate_url=crate_url,
        crate_table=crate_table,
        log_level=log_level.upper() if log_level else None,
        **{CONFIG_PATH_ENV: str(state.config_path) if state.config_path else None},
    )
    settings = get_settings(config_path=state.config_path, reload=True)

    host = host or settings.adapter_host
    port = port or settings.adapter_port
    workers = workers or settings.adapter_workers
    effective_log_level = settings.log_level.lower()

    if reload and workers > 1:
        console.print(
            "[yellow]Warning:[/yellow] --reload runs a single worker; "
            f"ignoring --workers {workers}."
        )
        workers = 1

    host_display = "localhost" if host == "0.0.0.0" else host
    base_url = f"http://{host_display}:{port}"

    summary = Table(title="Crate Remote Storage Adapter", show_header=False)
    summary.add_column("Setting", style="cyan", no_wrap=True)
    summary.add_column("Value")
    summary.add_row("Listen", f"{host}:{port}")
    summary.add_row("CrateDB", redact_url(settings.crate_url))
    summary.add_row("Table", settings.crate_table)
    summary.add_row("Workers", str(workers))
    summary.add_row("Log level", effective_log_level)
    summary.add_row("Remote write", f"{base_url}/write")
    summary.add_row("Remote read", f"{base_url}/read")
    summary.add_row("Metrics", f"{base_url}/metrics")
    console.print(summary)

    uvicorn_config = {
        "app": "crateadapter.api.app:app",
        "host": host,
        "port": port,
        "log_level": effective_log_level,
        "access_log": access_log,
    }
    if reload:
        uvicorn_config["reload"] = True
    else:
        uvicorn_config["workers"] = workers

    try:
        uvicorn.run(**uvicorn_config)
    except KeyboardInterrupt:
        console.print("\n[green]Server stopped[/green]\n")


@app.command("status")
def status(
    ctx: typer.Context,
    host: str = typer.Option("localhost", "--host", "-h", help="API server host"),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="API server port (default from settings)"
    ),
) -> None:
    """Check that a running adapter answers its health check.

    Example:
        crateadapter api status --host adapter.internal --port 9268
    """
    import httpx

    state = ctx.find_root().obj
    port = port or state.settings.adapter_port
    url = f"http://{host}:{port}/health"

    try:
        response = httpx.get(url, timeout=5.0)
    except httpx.ConnectError:
        console_err.print(f"[red]Cannot connect to API server at {url}[/red]")
        console_err.print("[yellow]Is the server running?[/yellow]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console_err.print(f"[red]Error checking server status: {e}[/red]")
        raise typer.Exit(1)

    if response.status_code != 200:
        console_err.print(
            f"[yellow]Server at {url} responded with status {response.status_code}[/yellow]"
        )
        raise typer.Exit(1)

    data = response.json()
    if state.output_format == "json":
        console.print_json(json.dumps(data))
        return

    console.print(f"[green]API server at {url} is {data.get('status', 'unknown')}[/green]")
    console.print(f"  Version:     {data.get('version', 'unknown')}")
    console.print(f"  Timestamp:   {data.get('timestamp', 'unknown')}")
