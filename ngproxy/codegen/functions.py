"""
Function generators: bindings from a server function to a generated client function.

Each variant produces the client half of a call (an anonymous function that
hands its argument and a callback id to the transport proxy) and the server
half (:meth:`respond`, which runs the bound function and maps the outcome to
a promise). The variants differ only in the shape of the server function's
input:

* :class:`NoArgFunction` wraps ``() -> outcome``
* :class:`StringArgFunction` wraps ``(str) -> outcome``
* :class:`ModelArgFunction` wraps ``(Model) -> outcome`` for a pydantic model
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, FrozenSet, Optional, Tuple, Type, Union, get_type_hints

from pydantic import BaseModel, ValidationError

from ..config import DEFAULT_CONFIG, ProxyConfig
from ..errors import DefinitionError
from ..observability.logging import log_rejection
from .expressions import Call, Expression, Function, Str, Var, call, null
from .promise import Promise, PromiseMapper, Rejected, to_promise

logger = logging.getLogger(__name__)

__all__ = [
    "Arity",
    "NoArgFunction",
    "StringArgFunction",
    "ModelArgFunction",
    "FunctionGenerator",
    "generator_for",
]

STRING_PARAM = "str"
JSON_PARAM = "json"


class Arity(str, Enum):
    """Shape of the input a server function accepts."""
    NONE = "none"
    STRING = "string"
    MODEL = "model"


def _describe(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)


def _proxy_call(config: ProxyConfig, argument: Expression, callback_id: str) -> Call:
    return Call(Var(config.proxy_service), (argument, Str(callback_id)))


def _map_outcome(outcome: Any, mapper: Optional[PromiseMapper], config: ProxyConfig) -> Promise:
    if mapper is not None:
        return mapper(outcome)
    return to_promise(outcome, default_reason=config.default_reject_reason)


def _invoke(
    func: Callable[..., Any],
    args: Tuple[Any, ...],
    mapper: Optional[PromiseMapper],
    config: ProxyConfig,
    callback_id: Optional[str],
) -> Promise:
    try:
        outcome = func(*args)
    except Exception as exc:
        logger.exception("Server function %s raised", _describe(func))
        outcome = exc
    try:
        promise = _map_outcome(outcome, mapper, config)
    except Exception as exc:
        logger.exception("Could not map the result of %s", _describe(func))
        outcome = exc
        promise = Rejected(config.default_reject_reason)
    if isinstance(promise, Rejected):
        log_rejection(
            callback_id=callback_id,
            reason=promise.reason,
            cause=type(outcome).__name__ if isinstance(outcome, BaseException) else None,
        )
    return promise


class _ProxyDependencies:
    """Dependency declarations shared by every variant."""

    config: ProxyConfig

    @property
    def module_dependencies(self) -> FrozenSet[str]:
        return frozenset({self.config.proxy_module})

    @property
    def service_dependencies(self) -> FrozenSet[str]:
        return frozenset({self.config.proxy_service})


@dataclass(frozen=True)
class NoArgFunction(_ProxyDependencies):
    func: Callable[[], Any]
    config: ProxyConfig = DEFAULT_CONFIG
    mapper: Optional[PromiseMapper] = None

    arity: ClassVar[Arity] = Arity.NONE

    def to_function_expression(self, callback_id: str) -> Function:
        return Function((), _proxy_call(self.config, null(), callback_id))

    def respond(self, data: Optional[str] = None, *, callback_id: Optional[str] = None) -> Promise:
        return _invoke(self.func, (), self.mapper, self.config, callback_id)


@dataclass(frozen=True)
class StringArgFunction(_ProxyDependencies):
    func: Callable[[str], Any]
    config: ProxyConfig = DEFAULT_CONFIG
    mapper: Optional[PromiseMapper] = None

    arity: ClassVar[Arity] = Arity.STRING

    def to_function_expression(self, callback_id: str) -> Function:
        return Function((STRING_PARAM,), _proxy_call(self.config, Var(STRING_PARAM), callback_id))

    def respond(self, data: Optional[str] = None, *, callback_id: Optional[str] = None) -> Promise:
        # The client proxy sends null for an undefined argument.
        return _invoke(self.func, ("" if data is None else data,), self.mapper, self.config, callback_id)


@dataclass(frozen=True)
class ModelArgFunction(_ProxyDependencies):
    func: Callable[[Any], Any]
    model: Type[BaseModel]
    config: ProxyConfig = DEFAULT_CONFIG
    mapper: Optional[PromiseMapper] = None

    arity: ClassVar[Arity] = Arity.MODEL

    def __post_init__(self) -> None:
        if not (isinstance(self.model, type) and issubclass(self.model, BaseModel)):
            raise DefinitionError(f"{self.model!r} is not a pydantic model")

    def to_function_expression(self, callback_id: str) -> Function:
        argument = call("JSON.stringify", Var(JSON_PARAM))
        return Function((JSON_PARAM,), _proxy_call(self.config, argument, callback_id))

    def respond(self, data: Optional[str] = None, *, callback_id: Optional[str] = None) -> Promise:
        if data is None:
            return self._reject_input(callback_id, "missing payload")
        try:
            instance = self.model.model_validate_json(data)
        except ValidationError as exc:
            return self._reject_input(callback_id, f"{exc.error_count()} validation error(s)")
        return _invoke(self.func, (instance,), self.mapper, self.config, callback_id)

    def _reject_input(self, callback_id: Optional[str], cause: str) -> Rejected:
        reason = self.config.invalid_json_reason
        log_rejection(
            callback_id=callback_id,
            reason=reason,
            cause=cause,
            extras={"model": self.model.__name__},
        )
        return Rejected(reason)


FunctionGenerator = Union[NoArgFunction, StringArgFunction, ModelArgFunction]


def _required_parameters(func: Callable[..., Any]) -> list:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError) as exc:
        raise DefinitionError(f"Cannot inspect server function {_describe(func)}: {exc}") from exc
    return [
        param
        for param in signature.parameters.values()
        if param.default is inspect.Parameter.empty
        and param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]


def _resolve_annotation(func: Callable[..., Any], param: inspect.Parameter) -> Any:
    annotation = param.annotation
    if not isinstance(annotation, str):
        return annotation
    target = inspect.unwrap(func)
    namespace = dict(getattr(target, "__globals__", {}))
    try:
        namespace.update(inspect.getclosurevars(target).nonlocals)
    except TypeError:
        pass
    try:
        return eval(annotation, namespace)
    except Exception as exc:
        raise DefinitionError(
            f"Cannot resolve annotation {annotation!r} of parameter '{param.name}' "
            f"in server function {_describe(func)}",
            hint="Pass the pydantic model explicitly, e.g. json_call(name, func, model=MyModel).",
        ) from exc


def _model_hint(func: Callable[..., Any], param: inspect.Parameter) -> Optional[Type[BaseModel]]:
    try:
        hint = get_type_hints(func).get(param.name, inspect.Parameter.empty)
    except (NameError, TypeError):
        # Local models under postponed annotations are not in the module namespace.
        hint = _resolve_annotation(func, param)
    if isinstance(hint, type) and issubclass(hint, BaseModel):
        return hint
    return None


def generator_for(
    func: Callable[..., Any],
    model: Optional[Type[BaseModel]] = None,
    *,
    config: ProxyConfig = DEFAULT_CONFIG,
    mapper: Optional[PromiseMapper] = None,
) -> FunctionGenerator:
    """Pick the generator variant matching ``func``'s signature.

    An explicit ``model`` always selects :class:`ModelArgFunction`. Otherwise
    a function without required parameters becomes :class:`NoArgFunction`, and
    a single parameter becomes :class:`ModelArgFunction` when annotated with a
    pydantic model or :class:`StringArgFunction` when not.
    """
    if not callable(func):
        raise DefinitionError(f"{func!r} is not callable")
    if model is not None:
        return ModelArgFunction(func, model, config, mapper)

    required = _required_parameters(func)
    if not required:
        return NoArgFunction(func, config, mapper)
    if len(required) == 1:
        hinted = _model_hint(func, required[0])
        if hinted is not None:
            return ModelArgFunction(func, hinted, config, mapper)
        return StringArgFunction(func, config, mapper)
    raise DefinitionError(
        f"Server function {_describe(func)} takes {len(required)} arguments",
        hint="Bind functions taking no argument, a string, or a single pydantic model.",
    )
