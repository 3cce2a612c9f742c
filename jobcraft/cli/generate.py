"""Generation commands.

- generate: send one prompt through the aggregator
- parse-response: run the response parser over a saved model reply
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from jobcraft.cli.utils import (
    cli_command,
    echo_status,
    load_config,
    open_aggregator,
)
from jobcraft.models.config import Strategy
from jobcraft.models.generation import GenerationOptions
from jobcraft.services.ai.exceptions import ResponseParseError
from jobcraft.services.ai.response_parser import ResponseParser

DEFAULT_TEST_PROMPT = (
    "Write a one-paragraph professional summary for a software engineer "
    "with 5 years of Python experience."
)


@cli_command
def generate_command(
    prompt: str = typer.Option(
        DEFAULT_TEST_PROMPT, "--prompt", "-p", help="Prompt to send"
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", help="Provider key (single strategy)"
    ),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        "-s",
        help="single, fastest, weighted or consensus (default from config)",
    ),
    max_tokens: int = typer.Option(500, "--max-tokens", help="Maximum tokens"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="AI config YAML (defaults to environment)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result"),
):
    """Generate text through the aggregator."""
    config = load_config(config_path)

    resolved = Strategy.parse(strategy, default=config.aggregation.strategy)
    if provider and strategy is None:
        resolved = Strategy.SINGLE

    options = GenerationOptions(
        strategy=resolved, provider=provider, max_tokens=max_tokens
    )

    echo_status(f"Strategy: {resolved.value}")
    result = asyncio.run(_generate(config, prompt, options))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            raise typer.Exit(code=1)
        return

    if result.error:
        echo_status(f"Generation failed: {result.message}", "error")
        raise typer.Exit(code=1)

    used = result.provider or ", ".join(result.providers_used or [])
    echo_status(f"Generated by: {used} ({result.response_time_ms} ms)", "success")
    if result.consensus_score is not None:
        typer.echo(f"Consensus score: {result.consensus_score:.2f}")
    typer.echo("")
    typer.echo(result.text)


async def _generate(config, prompt: str, options: GenerationOptions):
    with open_aggregator(config) as aggregator:
        return await aggregator.generate_text(prompt, options)


@cli_command
def parse_response_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved reply"),
    json_only: bool = typer.Option(
        False, "--json-only", help="Skip heuristic section extraction"
    ),
):
    """Recover the JSON object from a saved model reply."""
    content = file.read_text(encoding="utf-8")
    parser = ResponseParser()

    try:
        data = parser.parse_json(content) if json_only else parser.parse(content)
    except ResponseParseError as e:
        echo_status(str(e), "error")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
