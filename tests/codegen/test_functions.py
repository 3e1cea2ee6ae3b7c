"""Tests for the no-argument, string and model function generators."""

import json
import logging

import pytest
from pydantic import BaseModel

from ngproxy.codegen.functions import (
    Arity,
    ModelArgFunction,
    NoArgFunction,
    StringArgFunction,
    generator_for,
)
from ngproxy.codegen.promise import NO_CONTENT, Rejected, Resolved
from ngproxy.config import ProxyConfig
from ngproxy.errors import DefinitionError


class CheckIn(BaseModel):
    goal_id: str
    instance_id: int


class Counter:
    def __init__(self, result=NO_CONTENT):
        self.calls = []
        self.result = result

    def __call__(self, *args):
        self.calls.append(args)
        return self.result


# =============================================================================
# CLIENT HALF
# =============================================================================


def test_no_arg_function_expression():
    generator = NoArgFunction(lambda: NO_CONTENT)
    rendered = generator.to_function_expression("F1").render()
    assert rendered == 'function(){return transportProxy(null,"F1");}'


def test_string_function_passes_argument_through():
    generator = StringArgFunction(lambda s: s)
    rendered = generator.to_function_expression("F2").render()
    assert rendered == 'function(str){return transportProxy(str,"F2");}'


def test_model_function_serializes_argument():
    generator = ModelArgFunction(lambda m: m, CheckIn)
    rendered = generator.to_function_expression("F3").render()
    assert rendered == 'function(json){return transportProxy(JSON.stringify(json),"F3");}'


@pytest.mark.parametrize(
    "generator",
    [
        NoArgFunction(lambda: None),
        StringArgFunction(lambda s: None),
        ModelArgFunction(lambda m: None, CheckIn),
    ],
)
def test_default_dependencies(generator):
    assert generator.module_dependencies == frozenset({"proxy-module"})
    assert generator.service_dependencies == frozenset({"transportProxy"})


def test_dependencies_follow_configuration():
    config = ProxyConfig(proxy_module="zen.lift.proxy", proxy_service="liftProxy")
    generator = NoArgFunction(lambda: None, config)
    assert generator.module_dependencies == frozenset({"zen.lift.proxy"})
    assert generator.service_dependencies == frozenset({"liftProxy"})
    assert "liftProxy(null" in generator.to_function_expression("F").render()


def test_arity_tags():
    assert NoArgFunction.arity is Arity.NONE
    assert StringArgFunction.arity is Arity.STRING
    assert ModelArgFunction.arity is Arity.MODEL


# =============================================================================
# SERVER HALF
# =============================================================================


def test_no_arg_respond_encodes_result():
    generator = NoArgFunction(lambda: [{"id": 1}])
    assert generator.respond().render() == '{"success":true,"data":[{"id":1}]}'


def test_string_respond_passes_data_unmodified():
    counter = Counter()
    StringArgFunction(counter).respond("  goal-7 ")
    assert counter.calls == [("  goal-7 ",)]


def test_string_respond_treats_missing_data_as_empty():
    counter = Counter()
    StringArgFunction(counter).respond(None)
    assert counter.calls == [("",)]


def test_model_respond_deserializes_and_invokes():
    counter = Counter(result={"checked": True})
    generator = ModelArgFunction(counter, CheckIn)
    promise = generator.respond(json.dumps({"goal_id": "g", "instance_id": 3}))
    assert promise == generator.respond('{"goal_id":"g","instance_id":3}')
    assert json.loads(promise.render()) == {"success": True, "data": {"checked": True}}
    assert counter.calls[0] == (CheckIn(goal_id="g", instance_id=3),)


def test_model_respond_rejects_invalid_json_without_invoking():
    counter = Counter()
    generator = ModelArgFunction(counter, CheckIn)
    assert generator.respond("not json") == Rejected("invalid json")
    assert generator.respond('{"goal_id": "g"}') == Rejected("invalid json")
    assert generator.respond(None) == Rejected("invalid json")
    assert counter.calls == []


def test_model_respond_uses_configured_reason():
    generator = ModelArgFunction(Counter(), CheckIn, ProxyConfig(invalid_json_reason="bad input"))
    assert generator.respond("{").render() == '{"success":false,"msg":"bad input"}'


def test_raising_server_function_is_rejected_and_logged(caplog):
    def explode():
        raise RuntimeError("secret detail")

    with caplog.at_level(logging.INFO):
        promise = NoArgFunction(explode).respond(callback_id="Fx")
    assert promise == Rejected("server error")
    assert "secret detail" not in promise.render()
    assert any(record.exc_info for record in caplog.records)
    rejection = [r for r in caplog.records if getattr(r, "ngproxy_event", None) == "call_rejected"]
    assert rejection and rejection[0].ngproxy_data["callback"] == "Fx"
    assert rejection[0].ngproxy_data["cause"] == "RuntimeError"


def test_custom_mapper_replaces_default_mapping():
    generator = NoArgFunction(lambda: 0, mapper=lambda outcome: Resolved() if outcome == 0 else Rejected("x"))
    assert generator.respond() == Resolved()


def test_failing_mapper_rejects_with_default_reason(caplog):
    def broken(outcome):
        raise TypeError("cannot map")

    with caplog.at_level(logging.INFO):
        promise = NoArgFunction(lambda: 1, mapper=broken).respond(callback_id="Fm")
    assert promise == Rejected("server error")
    rejection = [r for r in caplog.records if getattr(r, "ngproxy_event", None) == "call_rejected"]
    assert rejection[0].ngproxy_data["cause"] == "TypeError"


def test_model_must_be_pydantic():
    with pytest.raises(DefinitionError):
        ModelArgFunction(lambda m: m, dict)  # type: ignore[arg-type]


# =============================================================================
# VARIANT SELECTION
# =============================================================================


def test_generator_for_no_arg():
    assert isinstance(generator_for(lambda: None), NoArgFunction)


def test_generator_for_string():
    assert isinstance(generator_for(lambda goal_id: None), StringArgFunction)


def test_generator_for_model_annotation():
    def check_in(payload: CheckIn):
        return NO_CONTENT

    generator = generator_for(check_in)
    assert isinstance(generator, ModelArgFunction)
    assert generator.model is CheckIn


def test_generator_for_explicit_model():
    generator = generator_for(lambda payload: None, CheckIn)
    assert isinstance(generator, ModelArgFunction)


def test_generator_for_ignores_defaulted_parameters():
    assert isinstance(generator_for(lambda limit=10: None), NoArgFunction)


def test_generator_for_rejects_wider_signatures():
    with pytest.raises(DefinitionError):
        generator_for(lambda a, b: None)
    with pytest.raises(DefinitionError):
        generator_for("not callable")  # type: ignore[arg-type]


def test_generator_for_unresolvable_annotation_needs_explicit_model():
    class Local(BaseModel):
        goal_id: str

    def handle(payload: "Local"):
        return payload

    with pytest.raises(DefinitionError) as excinfo:
        generator_for(handle)
    assert "model=" in excinfo.value.format()
    generator = generator_for(handle, Local)
    assert isinstance(generator, ModelArgFunction)
    assert generator.model is Local


def test_generator_for_resolves_string_annotation_from_closure():
    class Local(BaseModel):
        goal_id: str

    def handle(payload: "Local"):
        return isinstance(payload, Local)

    generator = generator_for(handle)
    assert isinstance(generator, ModelArgFunction)
    assert generator.model is Local


def test_generator_for_plain_string_annotation_stays_string():
    def handle(goal_id: "str", extra: "Missing" = None):
        return goal_id

    assert isinstance(generator_for(handle), StringArgFunction)
