"""Command-line interface for circannot."""

from circannot.cli.main import cli, main

__all__ = ["cli", "main"]
