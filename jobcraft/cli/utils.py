"""Helpers shared by the CLI commands.

- load_config: AIConfig from a YAML file or the environment
- open_aggregator: aggregator whose response cache is closed on exit
- cli_command: correlation ID plus uniform error reporting
- echo_status: colored one-line status messages
"""

import functools
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar

import typer

from jobcraft.models.config import AIConfig
from jobcraft.observability.context import correlation_id_context
from jobcraft.observability.logging import configure_logging, get_logger
from jobcraft.services.ai.aggregator import AIAggregator
from jobcraft.services.ai.cache import ResponseCache
from jobcraft.services.config_manager import ConfigManager, ConfigValidationError

# Logs go to stderr; only warnings and above during CLI use
configure_logging(level="WARNING")
logger = get_logger("cli")

F = TypeVar("F", bound=Callable)

STATUS_COLORS = {
    "success": typer.colors.GREEN,
    "warning": typer.colors.YELLOW,
    "error": typer.colors.RED,
    "info": typer.colors.CYAN,
}


def echo_status(message: str, level: str = "info") -> None:
    typer.secho(message, fg=STATUS_COLORS.get(level))


def load_config(config_path: Optional[Path]) -> AIConfig:
    """Load the AI configuration.

    Args:
        config_path: YAML file, or None to read the environment

    Raises:
        typer.Exit: If the file is missing or the configuration is invalid
    """
    try:
        return ConfigManager(str(config_path) if config_path else None).load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        echo_status(f"Configuration Error: {e}", "error")
        raise typer.Exit(code=1)


@contextmanager
def open_aggregator(config: AIConfig) -> Iterator[AIAggregator]:
    cache = ResponseCache(config.cache) if config.cache.enabled else None
    try:
        yield AIAggregator.from_config(config, cache=cache)
    finally:
        if cache is not None:
            cache.close()


def cli_command(func: F) -> F:
    """Run a command under its own correlation ID.

    Unexpected exceptions are logged and reported as exit code 1.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with correlation_id_context():
            try:
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except Exception as e:
                logger.exception("command_failed", command=func.__name__)
                echo_status(f"Error: {e}", "error")
                raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]
