"""Code generation for proxied AngularJS modules."""

from .expressions import Expression
from .factory import BuiltFactory, FactoryBuilder, callback_id_for, js_obj_factory
from .functions import Arity, FunctionGenerator, ModelArgFunction, NoArgFunction, StringArgFunction
from .module import ModuleBuilder, ModuleKey, module
from .promise import NO_CONTENT, Rejected, Resolved, promise_of, to_promise

__all__ = [
    "Expression",
    "BuiltFactory",
    "FactoryBuilder",
    "callback_id_for",
    "js_obj_factory",
    "Arity",
    "FunctionGenerator",
    "ModelArgFunction",
    "NoArgFunction",
    "StringArgFunction",
    "ModuleBuilder",
    "ModuleKey",
    "module",
    "NO_CONTENT",
    "Rejected",
    "Resolved",
    "promise_of",
    "to_promise",
]
