"""
Minimal JavaScript expression tree used to emit generated definitions.

Only the shapes the module and factory builders need are modelled:
calls, variable references, string and boolean literals, arrays,
object literals, anonymous functions and raw fragments. Every node is
an immutable dataclass with a single ``render`` operation that returns
compact, deterministic source text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from ..errors import DefinitionError

__all__ = [
    "Expression",
    "Raw",
    "Str",
    "Bool",
    "Var",
    "Call",
    "Array",
    "Obj",
    "Function",
    "call",
    "obj",
    "null",
    "quote",
    "statements",
]

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def quote(value: str) -> str:
    """JSON-quote ``value`` so it cannot terminate an enclosing script element."""
    return json.dumps(value).replace("</", "<\\/")


def _check_identifier(name: str, *, dotted: bool) -> str:
    if not name:
        raise DefinitionError("Identifier must not be empty")
    parts = name.split(".") if dotted else [name]
    for part in parts:
        if not _IDENTIFIER.match(part):
            raise DefinitionError(f"'{name}' is not a valid JavaScript identifier")
    return name


class Expression:
    """Base class for all emittable expression nodes."""

    def render(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Raw(Expression):
    """Pre-rendered source text, emitted verbatim."""

    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class Str(Expression):
    value: str

    def render(self) -> str:
        return quote(self.value)


@dataclass(frozen=True)
class Bool(Expression):
    value: bool

    def render(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class Var(Expression):
    """Variable reference: ``name`` or ``base.name``."""

    name: str
    base: Optional[Expression] = None

    def __post_init__(self) -> None:
        _check_identifier(self.name, dotted=True)

    def render(self) -> str:
        if self.base is None:
            return self.name
        return f"{self.base.render()}.{self.name}"


@dataclass(frozen=True)
class Call(Expression):
    """Function call: callee(arg1,arg2,...)"""

    callee: Expression
    args: Tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def render(self) -> str:
        return f"{self.callee.render()}({','.join(arg.render() for arg in self.args)})"


@dataclass(frozen=True)
class Array(Expression):
    items: Tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def render(self) -> str:
        return f"[{','.join(item.render() for item in self.items)}]"


@dataclass(frozen=True)
class Obj(Expression):
    """Object literal with quoted keys, in declaration order."""

    fields: Tuple[Tuple[str, Expression], ...] = ()

    def __post_init__(self) -> None:
        pairs = tuple((key, value) for key, value in self.fields)
        for key, _ in pairs:
            if not key:
                raise DefinitionError("Object literal keys must not be empty")
        object.__setattr__(self, "fields", pairs)

    def render(self) -> str:
        body = ",".join(f"{quote(key)}:{value.render()}" for key, value in self.fields)
        return "{" + body + "}"


@dataclass(frozen=True)
class Function(Expression):
    """Anonymous function returning ``body``: function(a,b){return body;}"""

    params: Tuple[str, ...] = ()
    body: Optional[Expression] = None

    def __post_init__(self) -> None:
        params = tuple(self.params)
        for param in params:
            _check_identifier(param, dotted=False)
        if len(set(params)) != len(params):
            raise DefinitionError(f"Duplicate parameter names in {params}")
        object.__setattr__(self, "params", params)

    def render(self) -> str:
        body = "" if self.body is None else f"return {self.body.render()};"
        return f"function({','.join(self.params)}){{{body}}}"


def null() -> Raw:
    return Raw("null")


def statements(exprs: Iterable[Expression]) -> str:
    """Render expressions as a sequence of ``;``-terminated statements."""
    return "".join(f"{expr.render()};" for expr in exprs)


def call(callee: str, *args: Expression) -> Call:
    """Shorthand for calling a named function."""
    return Call(Var(callee), args)


def obj(pairs: Sequence[Tuple[str, Expression]]) -> Obj:
    return Obj(tuple(pairs))
