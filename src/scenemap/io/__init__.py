"""Persistence helpers for scene parameter trees."""

from scenemap.io.presets import load_preset, save_preset

__all__ = ["load_preset", "save_preset"]
