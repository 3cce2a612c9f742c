"""Parse-resume command: structured data from a resume document."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from jobcraft.cli.utils import cli_command, echo_status, load_config
from jobcraft.services.ai.aggregator import AIAggregator
from jobcraft.services.resume_parser import ResumeParserService


@cli_command
def parse_resume_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Resume file"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="AI config YAML (defaults to environment)"
    ),
    show_text: bool = typer.Option(
        False, "--show-text", help="Also print the extracted text"
    ),
):
    """Parse a resume (.txt, .md or .pdf) into candidate fields."""
    config = load_config(config_path)
    service = ResumeParserService(AIAggregator.from_config(config))

    result = asyncio.run(service.parse_resume(file))
    if not result["success"]:
        echo_status(f"Resume parsing failed: {result['error']}", "error")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result["data"], indent=2, ensure_ascii=False))
    if show_text:
        typer.echo("")
        typer.echo(result["raw_text"])
