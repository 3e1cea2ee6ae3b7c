"""Server-side table mapping emitted callback ids back to their generators."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Iterator, Optional

from ..codegen.functions import FunctionGenerator
from ..codegen.module import ModuleBuilder
from ..codegen.promise import Promise
from ..errors import UnknownCallbackError

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_MAX_ENTRIES", "CallbackTable"]

DEFAULT_MAX_ENTRIES = 10000


class CallbackTable:
    """Application-wide dispatch table for proxied calls.

    Each render registry salts its callback ids, so every emission owns its
    entries and closures bound for one request are never reached through
    another request's page. The table keeps at most ``max_entries`` ids and
    evicts the least recently registered first; calls to an evicted id fail
    like calls to an unknown one.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._generators: "OrderedDict[str, FunctionGenerator]" = OrderedDict()
        self._lock = threading.Lock()

    def register(self, callback_id: str, generator: FunctionGenerator) -> None:
        with self._lock:
            self._generators[callback_id] = generator
            self._generators.move_to_end(callback_id)
            while len(self._generators) > self.max_entries:
                evicted, _ = self._generators.popitem(last=False)
                logger.debug("Evicted callback %s", evicted)

    def register_module(self, module: ModuleBuilder, salt: str = "") -> int:
        count = 0
        for callback_id, generator in module.bindings(salt):
            self.register(callback_id, generator)
            count += 1
        logger.debug("Bound %d callbacks for module %s", count, module.name)
        return count

    def dispatch(self, callback_id: str, data: Optional[str] = None) -> Promise:
        with self._lock:
            generator = self._generators.get(callback_id)
        if generator is None:
            raise UnknownCallbackError(callback_id)
        return generator.respond(data, callback_id=callback_id)

    def __contains__(self, callback_id: object) -> bool:
        return callback_id in self._generators

    def __len__(self) -> int:
        return len(self._generators)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._generators))
