"""Tests for workspace configuration loading."""

import json
from pathlib import Path

import pytest

from ngproxy.config import DEFAULT_CONFIG, ProxyConfig, load_proxy_config, locate_config_file
from ngproxy.errors import ConfigError


def test_defaults_without_config_file(tmp_path: Path):
    assert load_proxy_config(tmp_path, environ={}) == DEFAULT_CONFIG


def test_toml_config(tmp_path: Path):
    (tmp_path / "ngproxy.toml").write_text(
        'proxy_module = "zen.lift.proxy"\nproxy_service = "liftProxy"\nwrap_script = false\n',
        encoding="utf-8",
    )
    config = load_proxy_config(tmp_path, environ={})
    assert config.proxy_module == "zen.lift.proxy"
    assert config.proxy_service == "liftProxy"
    assert config.wrap_script is False


def test_json_rc_config(tmp_path: Path):
    (tmp_path / ".ngproxyrc").write_text(json.dumps({"conflict_policy": "error"}), encoding="utf-8")
    assert load_proxy_config(tmp_path, environ={}).conflict_policy == "error"


def test_pyproject_tool_table(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "site"\n\n[tool.ngproxy]\nroute_prefix = "/rpc"\n',
        encoding="utf-8",
    )
    assert load_proxy_config(tmp_path, environ={}).route_prefix == "/rpc"


def test_dedicated_file_wins_over_pyproject(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text('[tool.ngproxy]\nroute_prefix = "/a"\n', encoding="utf-8")
    (tmp_path / "ngproxy.toml").write_text('route_prefix = "/b"\n', encoding="utf-8")
    assert locate_config_file(tmp_path) == tmp_path / "ngproxy.toml"
    assert load_proxy_config(tmp_path, environ={}).route_prefix == "/b"


def test_environment_overrides_file(tmp_path: Path):
    (tmp_path / "ngproxy.toml").write_text('default_reject_reason = "oops"\n', encoding="utf-8")
    config = load_proxy_config(
        tmp_path,
        environ={"NGPROXY_DEFAULT_REJECT_REASON": "unavailable", "NGPROXY_WRAP_SCRIPT": "no"},
    )
    assert config.default_reject_reason == "unavailable"
    assert config.wrap_script is False


def test_unknown_keys_are_ignored(tmp_path: Path):
    (tmp_path / "ngproxy.toml").write_text('colour = "blue"\n', encoding="utf-8")
    assert load_proxy_config(tmp_path, environ={}) == DEFAULT_CONFIG


def test_explicit_missing_file_falls_back_to_defaults(tmp_path: Path):
    assert locate_config_file(tmp_path, tmp_path / "missing.toml") is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"conflict_policy": "merge"},
        {"proxy_service": "transport-proxy"},
        {"module_function": "angular module"},
        {"route_prefix": "rpc"},
        {"proxy_module": ""},
        {"max_callbacks": 0},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ConfigError):
        ProxyConfig(**overrides).validate()


def test_max_callbacks_from_environment(tmp_path: Path):
    config = load_proxy_config(tmp_path, environ={"NGPROXY_MAX_CALLBACKS": "250"})
    assert config.max_callbacks == 250


def test_non_integer_max_callbacks_is_rejected(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_proxy_config(tmp_path, environ={"NGPROXY_MAX_CALLBACKS": "lots"})
