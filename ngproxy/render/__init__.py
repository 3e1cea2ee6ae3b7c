"""Per-request emission of generated modules."""

from .bindings import CallbackTable
from .registry import RenderRegistry, RenderState, script_element

__all__ = ["CallbackTable", "RenderRegistry", "RenderState", "script_element"]
