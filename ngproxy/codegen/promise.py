"""
Two-case promise model used to resolve or reject the client's ``$q`` promise.

Server functions may return anything. :func:`to_promise` maps the outcome to
either :class:`Resolved` or :class:`Rejected`; the transport then sends the
rendered object literal back to the client-side proxy, which resolves with
``data`` or rejects with ``msg``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from pydantic_core import to_jsonable_python

from .expressions import Bool, Expression, Obj, Raw, Str

__all__ = [
    "DEFAULT_REASON",
    "NO_CONTENT",
    "Resolved",
    "Rejected",
    "Promise",
    "PromiseMapper",
    "promise_of",
    "to_promise",
    "encode_json",
]

DEFAULT_REASON = "server error"

SUCCESS_FIELD = "success"


class _NoContent:
    """Sentinel returned by server functions that succeed without a payload."""

    _instance: Optional["_NoContent"] = None

    def __new__(cls) -> "_NoContent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_CONTENT"


NO_CONTENT = _NoContent()


@dataclass(frozen=True)
class Resolved:
    data: Optional[Expression] = None

    @property
    def success(self) -> bool:
        return True

    def to_expression(self) -> Obj:
        if self.data is None:
            return Obj(((SUCCESS_FIELD, Bool(True)),))
        return Obj(((SUCCESS_FIELD, Bool(True)), ("data", self.data)))

    def render(self) -> str:
        return self.to_expression().render()


@dataclass(frozen=True)
class Rejected:
    reason: str = DEFAULT_REASON

    @property
    def success(self) -> bool:
        return False

    def to_expression(self) -> Obj:
        return Obj(((SUCCESS_FIELD, Bool(False)), ("msg", Str(self.reason))))

    def render(self) -> str:
        return self.to_expression().render()


Promise = Union[Resolved, Rejected]

PromiseMapper = Callable[[Any], Promise]


def promise_of(success: bool) -> Promise:
    return Resolved() if success else Rejected()


def encode_json(value: Any) -> str:
    """Serialize a server value to compact JSON that is safe inside ``<script>``.

    Values pydantic cannot serialize are encoded through ``str()``.
    """
    text = json.dumps(to_jsonable_python(value, fallback=str), separators=(",", ":"))
    return text.replace("</", "<\\/")


def to_promise(outcome: Any, *, default_reason: str = DEFAULT_REASON) -> Promise:
    """Map a server function's outcome onto a promise.

    Expressions are passed through as the payload, ``NO_CONTENT`` resolves
    without data, ``None`` and exceptions reject with ``default_reason`` and
    anything else is JSON encoded. Failure details never reach the client.
    """
    if isinstance(outcome, (Resolved, Rejected)):
        return outcome
    if isinstance(outcome, Expression):
        return Resolved(outcome)
    if outcome is NO_CONTENT:
        return Resolved()
    if outcome is None:
        return Rejected(default_reason)
    if isinstance(outcome, BaseException):
        return Rejected(default_reason)
    return Resolved(Raw(encode_json(outcome)))
