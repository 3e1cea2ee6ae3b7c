"""
Builder for AngularJS module declarations generated at page render time.

Usage::

    widgets = module("zen.demo").add_factory(
        "widgets",
        js_obj_factory()
        .json_call("list", list_widgets)
        .json_call("join", lambda widget_id: join_widget(user, widget_id))
        .json_call("checkIn", check_in),  # check_in(payload: CheckIn)
    )

The registry in :mod:`ngproxy.render.registry` decides where the declaration
ends up on the page.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Dict, FrozenSet, Iterable, Iterator, Tuple

from ..config import DEFAULT_CONFIG, ProxyConfig
from ..errors import DefinitionError, DuplicateNameError
from .expressions import Array, Call, Expression, Str, Var
from .factory import FactoryBuilder
from .functions import FunctionGenerator

__all__ = ["ModuleKey", "ModuleBuilder", "module"]


@dataclass(frozen=True)
class ModuleKey:
    """Identity of a module for deduplication: its name and nothing else."""

    name: str


class ModuleBuilder:
    """A named module declaration grouping factories and their dependencies.

    ``dependencies`` lists other modules whose services this module uses;
    factories add their own module dependencies when the module is built.
    Instances compare by identity. Use :attr:`key` to deduplicate.
    """

    def __init__(
        self,
        name: str,
        dependencies: Iterable[str] = (),
        *,
        config: ProxyConfig = DEFAULT_CONFIG,
    ):
        if not name:
            raise DefinitionError("Module name must not be empty")
        self.name = name
        self.config = config
        self._dependencies: FrozenSet[str] = frozenset(dependencies)
        self._factories: Dict[str, FactoryBuilder] = {}

    @property
    def key(self) -> ModuleKey:
        return ModuleKey(self.name)

    def add_factory(self, service_name: str, factory: FactoryBuilder) -> "ModuleBuilder":
        if not service_name:
            raise DefinitionError(f"Factory name must not be empty in module '{self.name}'")
        if service_name in self._factories:
            raise DuplicateNameError(
                f"Factory '{service_name}' is already defined in module '{self.name}'"
            )
        self._factories[service_name] = factory
        return self

    def factory(self, service_name: str, factory: FactoryBuilder) -> "ModuleBuilder":
        """Alias of :meth:`add_factory` mirroring ``angular.module(...).factory``."""
        return self.add_factory(service_name, factory)

    @property
    def factories(self) -> Dict[str, FactoryBuilder]:
        return dict(self._factories)

    @property
    def dependencies(self) -> FrozenSet[str]:
        """Explicit dependencies plus those required by every factory."""
        return self._dependencies.union(
            *(factory.module_dependencies for factory in self._factories.values())
        )

    def scope(self, service_name: str, salt: str = "") -> str:
        """Callback scope of ``service_name``; ``salt`` makes it unique to one emission."""
        if salt:
            return f"{salt}:{self.name}/{service_name}"
        return f"{self.name}/{service_name}"

    def bindings(self, salt: str = "") -> Iterator[Tuple[str, FunctionGenerator]]:
        for service_name, factory in self._factories.items():
            yield from factory.bindings(self.scope(service_name, salt))

    def build(self, salt: str = "") -> Expression:
        declaration: Expression = Call(
            Var(self.config.module_function),
            (Str(self.name), Array(tuple(Str(dep) for dep in sorted(self.dependencies)))),
        )
        return reduce(
            lambda chained, item: Call(
                Var("factory", chained),
                (Str(item[0]), item[1].build(self.scope(item[0], salt)).expression),
            ),
            self._factories.items(),
            declaration,
        )

    def render(self, salt: str = "") -> str:
        return self.build(salt).render()

    def __repr__(self) -> str:
        return f"ModuleBuilder({self.name!r}, factories={list(self._factories)!r})"


def module(
    name: str,
    dependencies: Iterable[str] = (),
    *,
    config: ProxyConfig = DEFAULT_CONFIG,
) -> ModuleBuilder:
    return ModuleBuilder(name, dependencies, config=config)
