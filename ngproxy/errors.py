"""Unified error model for ngproxy."""

from __future__ import annotations

from typing import Optional


class NgProxyError(Exception):
    """Base class for all definition, render and dispatch errors."""

    code: Optional[str] = None
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint

    def format(self) -> str:
        components = [self.message]
        if self.code:
            components[-1] = f"{components[-1]} ({self.code})"
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(part for part in components if part)


class DefinitionError(NgProxyError):
    """Raised when a module, factory, function or identifier is malformed."""

    code = "NGP001"


class DuplicateNameError(DefinitionError):
    """Raised when a name is registered twice in the same container."""

    code = "NGP002"


class RenderStateError(NgProxyError):
    """Raised when the per-request render lifecycle is violated."""

    code = "NGP003"


class UnknownCallbackError(NgProxyError):
    """Raised when a transport call names a callback that was never emitted."""

    code = "NGP004"

    def __init__(self, callback_id: str) -> None:
        super().__init__(
            f"No server function is bound to callback '{callback_id}'",
            hint="The page that emitted this callback may predate a server restart.",
        )
        self.callback_id = callback_id


class ConfigError(NgProxyError):
    """Raised when configuration values are invalid."""

    code = "NGP005"


__all__ = [
    "NgProxyError",
    "DefinitionError",
    "DuplicateNameError",
    "RenderStateError",
    "UnknownCallbackError",
    "ConfigError",
]
