# tests/unit/test_sandbox.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging

import pytest

from gotspec.core.bindings import Bindings
from gotspec.core.errors import ScriptError, UnknownInterpreterError
from gotspec.core.spec import Action
from gotspec.extensions.sandbox import (
    ERROR_KEY,
    INTERPRETERS,
    ActionSandbox,
    CallableSandbox,
    NoopSandbox,
    SandboxResult,
    check_interpreter,
    is_permanent,
    run_action,
)


def test_interpreters():
    assert INTERPRETERS == {"ecmascript", "ecmascript-5.1", "goja"}


@pytest.mark.parametrize("interpreter", ["", "lua", None, "ECMAScript"])
def test_check_interpreter_rejects(interpreter):
    with pytest.raises(UnknownInterpreterError):
        check_interpreter(interpreter, "n")


def test_sandboxes_satisfy_protocol(sandbox):
    assert isinstance(sandbox, ActionSandbox)
    assert isinstance(NoopSandbox(), ActionSandbox)


def test_noop_sandbox(caplog):
    with caplog.at_level(logging.WARNING):
        result = NoopSandbox().run({"?x": 1}, "whatever", "ecmascript")
    assert result == SandboxResult({"?x": 1}, [])
    assert "NoopSandbox" in caplog.text


def test_silent_noop_sandbox(caplog):
    with caplog.at_level(logging.WARNING):
        NoopSandbox(silent=True).run({}, "whatever", "ecmascript")
    assert caplog.text == ""


def test_callable_sandbox_isolates_bindings():
    sb = CallableSandbox()

    @sb.register("mutate")
    def mutate(env):
        env.bindings["?list"].append(2)
        return env.bindings

    original = {"?list": [1]}
    result = sb.run(original, "mutate", "ecmascript")
    assert original == {"?list": [1]}
    assert result.bindings == {"?list": [1, 2]}


def test_callable_sandbox_emitted_messages_are_copies():
    sb = CallableSandbox()
    message = {"a": [1]}

    @sb.register("emit")
    def emit(env):
        env.out(message)
        return {}

    result = sb.run({}, "emit", "ecmascript")
    message["a"].append(2)
    assert result.emitted == [{"a": [1]}]


def test_callable_sandbox_unknown_source():
    with pytest.raises(ScriptError):
        CallableSandbox().run({}, "missing", "ecmascript")


def test_callable_sandbox_wraps_exceptions(sandbox):
    with pytest.raises(ScriptError) as exc:
        sandbox.run({}, "fail", "ecmascript")
    assert "RuntimeError" in exc.value.message


def test_callable_sandbox_rejects_non_mapping_results():
    sb = CallableSandbox({"three": lambda env: 3})
    with pytest.raises(ScriptError):
        sb.run({}, "three", "ecmascript")


def test_callable_sandbox_structured_source():
    sb = CallableSandbox()
    sb.register({"op": "inc"}, lambda env: {"?n": env.bindings["?n"] + 1})
    assert sb.run({"?n": 1}, {"op": "inc"}, "ecmascript").bindings == {"?n": 2}


def test_refusal(sandbox):
    assert sandbox.run({"?x": 1}, "refuse", "goja").bindings is None


def test_run_action_records_script_error(sandbox, caplog):
    with caplog.at_level(logging.WARNING):
        execution = run_action(sandbox, Action("ecmascript", "fail"), Bindings({"?x": 1}), "start")
    assert execution.bindings[ERROR_KEY] == "RuntimeError: boom"
    assert execution.bindings["?x"] == 1
    assert execution.emitted == []
    assert execution.error == "RuntimeError: boom"
    assert "start" in caplog.text


def test_run_action_uses_bindings_attached_to_error():
    def explode(env):
        raise ScriptError("partial", bindings={"?partial": True})

    sb = CallableSandbox({"explode": explode})
    execution = run_action(sb, Action("ecmascript", "explode"), Bindings({"?x": 1, "keep!": 1}))
    assert execution.bindings.to_dict() == {"?partial": True, ERROR_KEY: "partial", "keep!": 1}


def test_run_action_preserves_permanent_bindings(sandbox):
    execution = run_action(sandbox, Action("ecmascript", "clear"), Bindings({"?x": 1, "id!": "a"}))
    assert execution.bindings.to_dict() == {"id!": "a"}


def test_run_action_checks_interpreter(sandbox):
    with pytest.raises(UnknownInterpreterError):
        run_action(sandbox, Action("python", "accept"), Bindings(), "start")


def test_run_action_is_timed(sandbox, times):
    run_action(sandbox, Action("ecmascript", "accept"), Bindings(), times=times)
    assert times.summary()["sandbox"]["n"] == 1


def test_is_permanent():
    assert is_permanent("id!")
    assert not is_permanent("?id")
