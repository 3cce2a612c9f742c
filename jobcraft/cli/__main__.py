"""CLI entry point.

Allows running the CLI as a module: python -m jobcraft.cli
"""

from jobcraft.cli import app

if __name__ == "__main__":
    app()
