"""Command line utilities for scenemap."""

from scenemap.cli.app import main, run_cli

__all__ = ["main", "run_cli"]
