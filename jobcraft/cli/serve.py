"""Serve command: run the HTTP API with uvicorn."""

from pathlib import Path
from typing import Optional

import typer

from jobcraft.cli.utils import cli_command, echo_status, load_config


@cli_command
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Bind host"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="AI config YAML (defaults to environment)"
    ),
):
    """Start the API server."""
    from jobcraft.api.server import run_server
    from jobcraft.services.ai.aggregator import AIAggregator

    config = load_config(config_path)
    aggregator = AIAggregator.from_config(config)

    echo_status(f"Starting API server at http://{host}:{port}")
    run_server(aggregator, host=host, port=port)
