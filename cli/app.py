from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from app.main import create_app
from cli.render import render_failure, render_reading, render_settings
from logging_config import configure_logging
from services.collector import AwairCollector
from services.device_client import DeviceClient, FetchError
from settings import ConfigError, Settings, load_settings

logger = logging.getLogger(__name__)


@dataclass
class CLIOptions:
    config_path: Optional[Path]


@dataclass
class CLIState:
    settings: Settings
    client: DeviceClient


app = typer.Typer(
    help="Prometheus exporter for Awair air-quality devices.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    """Resolve settings on first use so ``--help`` works without any hosts configured."""
    state = ctx.find_object(CLIState)
    if state is not None:
        return state
    options = ctx.find_object(CLIOptions)
    if options is None:
        raise typer.Exit(code=1)
    try:
        settings = load_settings(options.config_path)
    except ConfigError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    configure_logging(settings.log_level)
    client = DeviceClient()
    ctx.call_on_close(client.close)
    state = CLIState(settings=settings, client=client)
    ctx.obj = state
    return state


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        dir_okay=False,
        help="YAML config file (defaults to AWAIR_CONFIG_PATH env or /config/config.yml).",
    ),
) -> None:
    """Entry point for the CLI."""
    ctx.obj = CLIOptions(config_path=config)


@app.command("serve")
def serve_command(
    ctx: typer.Context,
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind the metrics server to."),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        min=1,
        max=65535,
        help="Override the configured listen port.",
    ),
) -> None:
    """Serve /metrics, polling every device on each scrape."""
    state = _get_state(ctx)
    listen_port = port if port is not None else state.settings.listen_port
    collector = AwairCollector(hosts=state.settings.hosts, client=state.client)
    logger.info(
        "Starting server on %s:%s",
        host,
        listen_port,
        extra={"device_count": len(collector.hosts)},
    )
    uvicorn.run(create_app(collector), host=host, port=listen_port, log_config=None)


@app.command("check")
def check_command(ctx: typer.Context) -> None:
    """Fetch one reading from every configured device and print it."""
    state = _get_state(ctx)
    failures = 0
    for index, host in enumerate(state.settings.hosts):
        if index:
            typer.echo()
        try:
            reading = state.client.fetch(host)
        except FetchError as exc:
            failures += 1
            render_failure(exc)
            continue
        render_reading(host, reading)
    if failures:
        raise typer.Exit(code=1)


@app.command("config")
def config_command(ctx: typer.Context) -> None:
    """Print the resolved configuration."""
    state = _get_state(ctx)
    render_settings(state.settings)
