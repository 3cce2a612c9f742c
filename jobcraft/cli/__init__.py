"""Jobcraft CLI Package.

Usage:
    python -m jobcraft.cli providers
    python -m jobcraft.cli generate --strategy weighted --prompt "..."
    python -m jobcraft.cli parse-response reply.txt
    python -m jobcraft.cli parse-resume resume.pdf
    python -m jobcraft.cli serve --port 8000
"""

import typer

from jobcraft.cli.generate import generate_command, parse_response_command
from jobcraft.cli.providers import providers_command
from jobcraft.cli.resume import parse_resume_command
from jobcraft.cli.serve import serve_command

app = typer.Typer(help="Jobcraft: multi-provider AI for job applications")

app.command(name="providers")(providers_command)
app.command(name="generate")(generate_command)
app.command(name="parse-response")(parse_response_command)
app.command(name="parse-resume")(parse_resume_command)
app.command(name="serve")(serve_command)

__all__ = [
    "app",
    "providers_command",
    "generate_command",
    "parse_response_command",
    "parse_resume_command",
    "serve_command",
]
