"""
Tests for registry.py: method decorator checks and lookup
"""

import pytest

from spanreed.bridge.registry import HandlerRegistry, HandlerResult
from spanreed.protocol.errors import MethodNotFoundError


def test_register_and_lookup():
    registry = HandlerRegistry()

    @registry.method("echo")
    async def echo(host, params):
        return HandlerResult.ok(params)

    assert "echo" in registry
    assert registry.lookup("echo").fn is echo
    assert registry.names() == ["echo"]


def test_lookup_unknown_method():
    with pytest.raises(MethodNotFoundError) as info:
        HandlerRegistry().lookup("nope")
    assert str(info.value) == "unknown method nope"
    assert info.value.method == "nope"


def test_handler_must_be_async():
    registry = HandlerRegistry()
    with pytest.raises(TypeError):
        @registry.method("sync")
        def sync(host, params):
            return HandlerResult.ok()


def test_handler_must_take_host_and_params():
    registry = HandlerRegistry()
    with pytest.raises(TypeError):
        @registry.method("one-arg")
        async def one_arg(params):
            return HandlerResult.ok()


def test_method_name_must_be_a_string():
    registry = HandlerRegistry()
    with pytest.raises(TypeError):
        registry.method(42)
    with pytest.raises(TypeError):
        registry.method("   ")
    assert registry.names() == []


def test_overwrite_warns(caplog):
    registry = HandlerRegistry()

    @registry.method("dup")
    async def first(host, params):
        return HandlerResult.ok(1)

    @registry.method("dup")
    async def second(host, params):
        return HandlerResult.ok(2)

    assert registry.lookup("dup").fn is second
    assert "already exists" in caplog.text


def test_handler_result_constructors():
    assert HandlerResult.ok(3) == HandlerResult(success=True, value=3)
    assert HandlerResult.fail("bad") == HandlerResult(success=False, value="bad")
