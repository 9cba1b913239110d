from __future__ import annotations

from typing import Any

import click
import uvicorn

from httpbody.server import create_app
from httpbody.settings import HttpBodySettings
from httpbody.utilities.logging import configure_logging


@click.group()
def cli() -> None:
    """httpbody command line tools."""


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to listen on")
@click.option("--log-max-bytes", type=int, default=None, help="Maximum body bytes to log")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Log level",
)
def serve(host: str, port: int, log_max_bytes: int | None, log_level: str | None) -> None:
    """Run the body echo server."""
    overrides: dict[str, Any] = {}
    if log_max_bytes is not None:
        overrides["log_max_bytes"] = log_max_bytes
    if log_level is not None:
        overrides["log_level"] = log_level.upper()
    settings = HttpBodySettings(**overrides)

    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
