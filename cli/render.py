from __future__ import annotations

from typing import Any, Iterable

import typer

from models.records import AirReading
from services.collector import METRIC_DESCRIPTORS
from services.device_client import FetchError
from settings import Settings


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(host: str, reading: AirReading) -> None:
    echo_heading(f"Device {host}")
    echo_key_values([("timestamp", reading.timestamp.isoformat())])
    echo_key_values(
        (descriptor.name, getattr(reading, descriptor.field))
        for descriptor in METRIC_DESCRIPTORS
    )


def render_failure(error: FetchError) -> None:
    echo_heading(f"Device {error.host}")
    typer.secho(f"fetch failed: {error.reason}", fg=typer.colors.RED, err=True)


def render_settings(settings: Settings) -> None:
    echo_heading("Configuration")
    echo_key_values(
        [
            ("config_path", settings.config_path),
            ("listen_port", settings.listen_port),
            ("log_level", settings.log_level),
        ]
    )
    typer.echo("hosts:")
    for host in settings.hosts:
        typer.echo(f"  - {host}")
