"""Shared pytest fixtures for ngproxy tests."""

from typing import List

import pytest
from pydantic import BaseModel

from ngproxy.codegen import js_obj_factory, module
from ngproxy.render import CallbackTable, RenderRegistry


class Widget(BaseModel):
    id: int
    name: str


def list_widgets() -> List[Widget]:
    return [Widget(id=1, name="gear"), Widget(id=2, name="cog")]


def pytest_configure(config):
    """Register markers for pytest."""
    config.addinivalue_line("markers", "integration: mark test as integration test")


@pytest.fixture
def demo_module():
    """Module 'zen.demo' with a single no-argument 'list' function."""
    return module("zen.demo").add_factory(
        "widgets", js_obj_factory().json_call("list", list_widgets)
    )


@pytest.fixture
def bindings():
    return CallbackTable()


@pytest.fixture
def registry(bindings):
    return RenderRegistry(bindings=bindings)
