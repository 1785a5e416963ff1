"""Exception hierarchy shared by the mapping engine and its loaders."""

from __future__ import annotations

__all__ = [
    "MappingConfigError",
    "PresetError",
    "ScenemapError",
    "UnknownParameterPath",
    "UnknownStrategyError",
]


class ScenemapError(Exception):
    """Base class for errors raised by :mod:`scenemap`."""


class UnknownParameterPath(ScenemapError, KeyError):
    """Raised when a dot-delimited path is not part of the scene schema."""

    def __init__(self, path: str, detail: str | None = None) -> None:
        self.path = path
        message = f"Unknown parameter path '{path}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def __str__(self) -> str:  # KeyError quotes its argument otherwise
        return str(self.args[0])


class UnknownStrategyError(ScenemapError, ValueError):
    """Raised when a theme payload references an unsupported mapping strategy."""


class MappingConfigError(ScenemapError, ValueError):
    """Raised when a mapping override file cannot be interpreted."""


class PresetError(ScenemapError, ValueError):
    """Raised when a preset file does not contain a parameter tree."""
