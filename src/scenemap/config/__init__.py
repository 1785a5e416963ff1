"""Mapping override files layered on top of the built-in rules."""

from scenemap.config.loader import (
    apply_mapping_config,
    load_mapping_config,
    resolve_profile,
)

__all__ = ["apply_mapping_config", "load_mapping_config", "resolve_profile"]
