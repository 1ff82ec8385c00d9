"""Command-line interface for serialflash."""

from serialflash.cli.app import app, main


__all__ = ["app", "main"]
