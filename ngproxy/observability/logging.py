"""Centralised logging helpers for ngproxy."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

_LOGGER_CACHE: Dict[str, logging.Logger] = {}


def get_logger(name: str = "ngproxy") -> logging.Logger:
    """Return a cached :class:`logging.Logger` instance."""

    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = logging.getLogger(name)
    return _LOGGER_CACHE[name]


def log_rejection(
    *,
    callback_id: Optional[str],
    reason: str,
    cause: Optional[str] = None,
    level: int = logging.INFO,
    logger: Optional[logging.Logger] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit a structured entry for a server call mapped to a rejected promise."""

    payload: Dict[str, Any] = {
        "callback": callback_id or "unknown",
        "reason": reason,
    }
    if cause:
        payload["cause"] = cause
    if extras:
        payload.update(extras)
    target_logger = logger or get_logger("ngproxy.calls")
    target_logger.log(
        level,
        "Rejecting proxied call",
        extra={"ngproxy_event": "call_rejected", "ngproxy_data": payload},
    )
