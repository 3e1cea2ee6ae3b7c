"""
Per-request registry that deduplicates module declarations on a page.

Render call-sites register the modules they need with
:meth:`RenderRegistry.register_or_emit`. Until the ``<head>`` section is
rendered, modules are only collected and the call-site emits nothing; the
head then flushes all of them in one script element. Modules first seen after
the head render are emitted inline, once.

A registry lives for exactly one request. Create it at request start (see
:func:`ngproxy.server.get_render_registry`) and let it go at request end.
"""

from __future__ import annotations

import logging
import secrets
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

from ..codegen.expressions import statements
from ..codegen.module import ModuleBuilder, ModuleKey
from ..config import DEFAULT_CONFIG, ProxyConfig
from ..errors import DuplicateNameError, RenderStateError
from .bindings import CallbackTable

logger = logging.getLogger(__name__)

__all__ = ["RenderState", "RenderRegistry", "script_element"]


class RenderState(str, Enum):
    FRESH = "fresh"
    HEAD_RENDERED = "head_rendered"


def script_element(body: str) -> str:
    return f'<script type="text/javascript">\n{body}\n</script>'


class RenderRegistry:
    """Tracks the head-rendered flag and the modules already declared."""

    def __init__(
        self,
        config: ProxyConfig = DEFAULT_CONFIG,
        bindings: Optional[CallbackTable] = None,
    ) -> None:
        self.config = config
        self.bindings = bindings
        self._state = RenderState.FRESH
        self._modules: Dict[ModuleKey, ModuleBuilder] = {}
        # Salts every callback id this request emits.
        self.nonce = secrets.token_hex(8)

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def head_rendered(self) -> bool:
        return self._state is RenderState.HEAD_RENDERED

    @property
    def modules(self) -> Tuple[ModuleBuilder, ...]:
        return tuple(self._modules.values())

    def __contains__(self, item: Union[ModuleBuilder, ModuleKey]) -> bool:
        key = item.key if isinstance(item, ModuleBuilder) else item
        return key in self._modules

    def render_head(self) -> str:
        """Emit every module registered so far. May be called once per request."""
        # Only the <head> template calls this; a second call is a lifecycle bug.
        if self.head_rendered:
            raise RenderStateError(
                "render_head has already been called once for this request",
                hint="Call render_head only from the page's <head> section.",
            )
        self._state = RenderState.HEAD_RENDERED
        logger.debug("Rendering %d module(s) into head", len(self._modules))
        return self._emit(self._modules.values())

    def register_or_emit(self, module: ModuleBuilder) -> str:
        """Record ``module`` and return the markup this call-site should emit.

        Before the head render, and for modules already on the page, the
        result is empty. A module first seen after the head render is
        returned inline.
        """
        known = self._modules.get(module.key)
        if known is not None:
            self._check_conflict(known, module)
            return ""
        self._modules[module.key] = module
        if not self.head_rendered:
            logger.debug("Deferring module %s to head render", module.name)
            return ""
        logger.debug("Emitting module %s inline", module.name)
        return self._emit((module,))

    def _check_conflict(self, known: ModuleBuilder, candidate: ModuleBuilder) -> None:
        """Compare the generated declarations of two modules sharing a name.

        Only the emitted text is compared. Bound server functions are not part
        of it, so modules that differ only in the callables behind their
        functions count as identical and the first one stays bound.
        """
        if known is candidate or known.render() == candidate.render():
            return
        if self.config.conflict_policy == "error":
            raise DuplicateNameError(
                f"Module '{candidate.name}' was registered twice with different contents"
            )
        logger.warning(
            "Module %s was registered twice with different contents; keeping the first",
            candidate.name,
        )

    def _emit(self, modules: Iterable[ModuleBuilder]) -> str:
        modules = list(modules)
        if not modules:
            return ""
        if self.bindings is not None:
            for module in modules:
                self.bindings.register_module(module, self.nonce)
        body = statements(module.build(self.nonce) for module in modules)
        return script_element(body) if self.config.wrap_script else body
