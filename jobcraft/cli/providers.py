"""Providers command.

Reports each configured provider: whether it is enabled, whether a usable
API key is present, whether it was registered, and its capabilities.
"""

from pathlib import Path
from typing import Optional

import typer

from jobcraft.cli.utils import (
    cli_command,
    echo_status,
    load_config,
    open_aggregator,
)


@cli_command
def providers_command(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="AI config YAML (defaults to environment)"
    ),
):
    """Show provider configuration and availability."""
    config = load_config(config_path)

    echo_status("Provider configuration:")
    for key, provider in config.providers.items():
        enabled = "enabled" if provider.enabled else "disabled"
        key_state = "key set" if provider.has_credentials else "no key"
        typer.echo(f"  {key:<12} {enabled:<9} {key_state:<7} {provider.base_url}")

    typer.echo("")
    typer.echo(f"Default strategy: {config.aggregation.strategy.value}")
    typer.echo(f"Default provider: {config.default_provider}")
    cache_state = "enabled" if config.cache.enabled else "disabled"
    typer.echo(f"Cache: {cache_state} (ttl {config.cache.ttl_seconds}s)")

    with open_aggregator(config) as aggregator:
        available = aggregator.get_available_providers()

    typer.echo("")
    if not available:
        echo_status(
            "No providers available. Set an API key and enable a provider.", "error"
        )
        raise typer.Exit(code=1)

    echo_status(f"Available providers ({len(available)}):", "success")
    for key, info in available.items():
        capabilities = ", ".join(info["capabilities"])
        typer.echo(f"  {key:<12} {info['name']} [{capabilities}]")

    if config.default_provider not in available:
        echo_status(
            f"Default provider {config.default_provider} is not available; "
            "the single strategy will fail without an explicit --provider",
            "warning",
        )
