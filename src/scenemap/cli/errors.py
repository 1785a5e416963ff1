"""Error helpers for the scenemap command line tool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from scenemap.errors import MappingConfigError, PresetError, UnknownParameterPath

__all__ = [
    "CliError",
    "ErrorPayload",
    "build_error_payload",
    "category_for_exception",
    "log_cli_error",
]


# exit status per category; anything unknown is a runtime failure
_CATEGORY_STATUS_CODES: Mapping[str, int] = {
    "runtime": 1,
    "usage": 2,
    "io": 3,
    "not_found": 4,
}

_DEFAULT_CATEGORY = "runtime"
_DEFAULT_LOGGER_NAME = "scenemap.cli"


@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """Structured description of a failed command."""

    status_code: int
    category: str
    message: str
    context: Mapping[str, Any]

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "status_code": self.status_code,
            "category": self.category,
            "message": self.message,
            "context": dict(self.context),
        }


def category_for_exception(exc: BaseException) -> str:
    """Map library exceptions onto CLI error categories."""

    if isinstance(exc, FileNotFoundError):
        return "not_found"
    if isinstance(exc, (PresetError, MappingConfigError, UnknownParameterPath, ValueError, TypeError)):
        return "usage"
    if isinstance(exc, OSError):
        return "io"
    return _DEFAULT_CATEGORY


def build_error_payload(
    message: str,
    *,
    category: str = _DEFAULT_CATEGORY,
    context: Optional[Mapping[str, Any]] = None,
) -> ErrorPayload:
    category = category if category in _CATEGORY_STATUS_CODES else _DEFAULT_CATEGORY
    return ErrorPayload(
        status_code=_CATEGORY_STATUS_CODES[category],
        category=category,
        message=message,
        context={
            key: value if isinstance(value, (str, int, float, bool, type(None))) else str(value)
            for key, value in (context or {}).items()
        },
    )


def log_cli_error(
    payload: ErrorPayload,
    *,
    logger: Optional[logging.Logger] = None,
    exc_info: Optional[BaseException] = None,
) -> None:
    """Emit ``payload`` through ``logger.error`` with structured context."""

    target = logger or logging.getLogger(_DEFAULT_LOGGER_NAME)
    target.error(
        payload.message,
        extra={
            "event": "cli.error",
            "category": payload.category,
            "status_code": payload.status_code,
            "context": dict(payload.context),
        },
        exc_info=exc_info,
    )


class CliError(RuntimeError):
    """Error raised by command handlers; carries the process exit status.

    ``logged`` marks errors that were already reported so ``run_cli`` does
    not log them twice.
    """

    def __init__(
        self,
        message: str,
        *,
        category: str = _DEFAULT_CATEGORY,
        context: Optional[Mapping[str, Any]] = None,
        logged: bool = False,
    ) -> None:
        super().__init__(message)
        self.payload = build_error_payload(message, category=category, context=context)
        self.category = self.payload.category
        self.status_code = self.payload.status_code
        self.context = dict(self.payload.context)
        self.logged = logged

    @classmethod
    def from_exception(
        cls,
        message: str,
        exc: BaseException,
        *,
        context: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "CliError":
        """Log and wrap ``exc`` using the category it maps to."""

        error = cls(f"{message}: {exc}", category=category_for_exception(exc), context=context)
        log_cli_error(error.payload, logger=logger, exc_info=exc)
        error.logged = True
        return error
