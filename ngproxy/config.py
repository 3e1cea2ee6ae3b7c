"""Workspace configuration support for ngproxy."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older interpreters
    tomllib = None  # type: ignore

from .errors import ConfigError

CONFLICT_POLICIES = ("first", "error")
ENV_PREFIX = "NGPROXY_"

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_DOTTED_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*(\.[A-Za-z_$][A-Za-z0-9_$]*)*$")


@dataclass(frozen=True)
class ProxyConfig:
    """Names and policies shared by the generators, builders and registry."""

    module_function: str = "angular.module"
    proxy_module: str = "proxy-module"
    proxy_service: str = "transportProxy"
    default_reject_reason: str = "server error"
    invalid_json_reason: str = "invalid json"
    conflict_policy: str = "first"
    wrap_script: bool = True
    route_prefix: str = "/ngproxy"
    max_callbacks: int = 10000

    def validate(self) -> "ProxyConfig":
        if self.conflict_policy not in CONFLICT_POLICIES:
            raise ConfigError(
                f"Unknown conflict_policy '{self.conflict_policy}'",
                hint=f"Use one of: {', '.join(CONFLICT_POLICIES)}",
            )
        if not _IDENTIFIER.match(self.proxy_service):
            raise ConfigError(
                f"proxy_service '{self.proxy_service}' is not a valid parameter name",
                hint="The service name is injected as a function parameter.",
            )
        if not _DOTTED_IDENTIFIER.match(self.module_function):
            raise ConfigError(f"module_function '{self.module_function}' is not a valid identifier")
        if not self.proxy_module:
            raise ConfigError("proxy_module must not be empty")
        if not self.route_prefix.startswith("/"):
            raise ConfigError(f"route_prefix '{self.route_prefix}' must start with '/'")
        if self.max_callbacks < 1:
            raise ConfigError(f"max_callbacks must be positive, got {self.max_callbacks}")
        return self


DEFAULT_CONFIG = ProxyConfig()


def _read_json_config(path: Path) -> Dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    return json.loads(content)


def _read_toml_config(path: Path) -> Dict[str, Any]:
    if tomllib is None:
        raise RuntimeError("TOML parsing requires Python 3.11 or later.")
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce(name: str, raw: Any) -> Any:
    if name == "wrap_script":
        if isinstance(raw, str):
            return raw.strip().lower() in {"1", "true", "yes", "on"}
        return bool(raw)
    if name == "max_callbacks":
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"max_callbacks must be an integer, got {raw!r}") from exc
    return str(raw)


def _parse_section(data: Mapping[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(ProxyConfig)}
    return {key: _coerce(key, value) for key, value in data.items() if key in known}


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for f in fields(ProxyConfig):
        value = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value is not None:
            overrides[f.name] = _coerce(f.name, value)
    return overrides


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.exists() else None
    for candidate in ("ngproxy.toml", ".ngproxyrc", "pyproject.toml"):
        path = root / candidate
        if path.exists():
            return path
    return None


def load_proxy_config(
    root: Path,
    explicit: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> ProxyConfig:
    """Resolve configuration from a workspace file and ``NGPROXY_*`` variables.

    ``pyproject.toml`` is read from its ``[tool.ngproxy]`` table, ``ngproxy.toml``
    from its top level and ``.ngproxyrc`` as JSON. Environment values win.
    """
    root = root.resolve()
    config_path = locate_config_file(root, explicit)
    data: Dict[str, Any] = {}
    if config_path is not None:
        if config_path.suffix == ".toml":
            data = _read_toml_config(config_path)
            if config_path.name == "pyproject.toml":
                data = data.get("tool", {}).get("ngproxy", {})
        else:
            data = _read_json_config(config_path)

    values = _parse_section(data)
    values.update(_env_overrides(os.environ if environ is None else environ))
    return replace(DEFAULT_CONFIG, **values).validate()


__all__ = ["ProxyConfig", "DEFAULT_CONFIG", "CONFLICT_POLICIES", "locate_config_file", "load_proxy_config"]
