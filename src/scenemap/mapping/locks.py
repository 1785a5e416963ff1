"""Pinned parameters and manual override values."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

__all__ = ["LockRegistry"]

logger = logging.getLogger(__name__)

_UNSET = object()


class LockRegistry:
    """Track locked paths, their reasons and optional manual values."""

    def __init__(self) -> None:
        self._reasons: Dict[str, str | None] = {}
        self._overrides: Dict[str, Any] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._reasons

    def __len__(self) -> int:
        return len(self._reasons)

    def lock(self, path: str, reason: str | None = None) -> None:
        self._reasons[path] = reason
        suffix = f" ({reason})" if reason else ""
        logger.info(
            "Locked parameter: %s%s",
            path,
            suffix,
            extra={"event": "mapping.lock", "parameter": path, "reason": reason},
        )

    def unlock(self, path: str) -> None:
        self._reasons.pop(path, None)
        self._overrides.pop(path, None)
        logger.info(
            "Unlocked parameter: %s",
            path,
            extra={"event": "mapping.unlock", "parameter": path},
        )

    def is_locked(self, path: str) -> bool:
        return path in self._reasons

    def reason(self, path: str) -> str | None:
        return self._reasons.get(path)

    def locked(self) -> List[str]:
        return sorted(self._reasons)

    def set_override(self, path: str, value: Any, reason: str | None = None) -> None:
        """Pin ``path`` to a manual ``value``."""

        self.lock(path, reason or "manual override")
        self._overrides[path] = value

    def override(self, path: str, default: Any = _UNSET) -> Any:
        if default is _UNSET:
            return self._overrides[path]
        return self._overrides.get(path, default)

    def clear_override(self, path: str) -> None:
        if path in self._overrides:
            self.unlock(path)

    def clear_all(self) -> None:
        for path in list(self._overrides):
            self.unlock(path)

    def overrides(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._overrides))
