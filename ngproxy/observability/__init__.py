"""Logging helpers shared across ngproxy."""

from .logging import get_logger, log_rejection

__all__ = ["get_logger", "log_rejection"]
