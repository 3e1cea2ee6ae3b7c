"""
Factory builder that produces a JavaScript object full of proxied calls, e.g.

    function(transportProxy) {
      return {
        "get": function() { return transportProxy(null, "F..."); },
        "join": function(str) { return transportProxy(str, "F..."); }
      };
    }

The generator function is what ``angular.module(...).factory(name, ...)``
receives.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterator, Optional, Tuple, Type

from pydantic import BaseModel

from ..config import DEFAULT_CONFIG, ProxyConfig
from ..errors import DefinitionError, DuplicateNameError
from .expressions import Function, Obj
from .functions import FunctionGenerator, generator_for
from .promise import PromiseMapper

__all__ = ["BuiltFactory", "FactoryBuilder", "callback_id_for", "js_obj_factory"]


def callback_id_for(scope: str, function_name: str) -> str:
    """Callback id for ``function_name`` inside ``scope`` (``[salt:]module/service``)."""
    digest = hashlib.sha1(f"{scope}/{function_name}".encode("utf-8")).hexdigest()
    return f"F{digest[:20]}"


@dataclass(frozen=True)
class BuiltFactory:
    module_dependencies: FrozenSet[str]
    service_dependencies: FrozenSet[str]
    expression: Function

    @property
    def dependencies(self) -> FrozenSet[str]:
        return self.module_dependencies | self.service_dependencies


class FactoryBuilder:
    """A named group of function generators exposed as one service object."""

    def __init__(self, config: ProxyConfig = DEFAULT_CONFIG):
        self.config = config
        self._functions: Dict[str, FunctionGenerator] = {}

    def add_function(self, name: str, generator: FunctionGenerator) -> "FactoryBuilder":
        if not name:
            raise DefinitionError("Function name must not be empty")
        if name in self._functions:
            raise DuplicateNameError(f"Function '{name}' is already defined in this factory")
        self._functions[name] = generator
        return self

    def json_call(
        self,
        name: str,
        func: Callable[..., Any],
        model: Optional[Type[BaseModel]] = None,
        *,
        mapper: Optional[PromiseMapper] = None,
    ) -> "FactoryBuilder":
        """Register ``func`` under ``name``, choosing the generator from its signature.

        Returning ``None`` or raising rejects the client promise with the
        default reason; see :func:`ngproxy.codegen.promise.to_promise`.
        """
        return self.add_function(name, generator_for(func, model, config=self.config, mapper=mapper))

    @property
    def functions(self) -> Dict[str, FunctionGenerator]:
        return dict(self._functions)

    @property
    def module_dependencies(self) -> FrozenSet[str]:
        return frozenset().union(*(g.module_dependencies for g in self._functions.values()))

    @property
    def service_dependencies(self) -> FrozenSet[str]:
        return frozenset().union(*(g.service_dependencies for g in self._functions.values()))

    def bindings(self, scope: str) -> Iterator[Tuple[str, FunctionGenerator]]:
        for name, generator in self._functions.items():
            yield callback_id_for(scope, name), generator

    def build(self, scope: str) -> BuiltFactory:
        service_dependencies = self.service_dependencies
        members = Obj(tuple(
            (name, generator.to_function_expression(callback_id_for(scope, name)))
            for name, generator in self._functions.items()
        ))
        return BuiltFactory(
            self.module_dependencies,
            service_dependencies,
            Function(tuple(sorted(service_dependencies)), members),
        )

    def __len__(self) -> int:
        return len(self._functions)


def js_obj_factory(config: ProxyConfig = DEFAULT_CONFIG) -> FactoryBuilder:
    return FactoryBuilder(config)
