"""Command line interface for ChronOS."""

from chronos.cli.main import cli

__all__ = ["cli"]
