"""Logging utilities for scenemap."""

from scenemap.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
