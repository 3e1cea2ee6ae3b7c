"""
ngproxy: AngularJS service definitions generated from server functions.

Server code declares which Python functions a page may call; at render
time ngproxy emits ``angular.module(...).factory(...)`` definitions whose
functions call those server functions through a client-side transport
proxy and settle a promise from a uniform success/failure payload.

The code is organised into several modules:

* ``codegen`` – the expression tree, the promise mapping, the function
  generators and the factory/module builders.
* ``render`` – the per-request registry that decides whether a module is
  emitted in the page head or inline, and the callback table used to
  dispatch client calls back to server functions.
* ``server`` – FastAPI wiring: the registry dependency and the dispatch
  router.
* ``config`` – workspace configuration (``ngproxy.toml``, ``.ngproxyrc``
  or ``[tool.ngproxy]`` in ``pyproject.toml``).
"""

from importlib import metadata as _metadata

from .codegen import NO_CONTENT, js_obj_factory, module, promise_of
from .config import ProxyConfig, load_proxy_config
from .errors import NgProxyError
from .render import CallbackTable, RenderRegistry


try:
    __version__ = _metadata.version("ngproxy")
except _metadata.PackageNotFoundError:  # pragma: no cover - uninstalled source tree
    __version__ = "0.1.0"

__all__ = [
    "__version__",
    "NO_CONTENT",
    "js_obj_factory",
    "module",
    "promise_of",
    "ProxyConfig",
    "load_proxy_config",
    "NgProxyError",
    "CallbackTable",
    "RenderRegistry",
]
