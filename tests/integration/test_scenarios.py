# tests/integration/test_scenarios.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import json

import pytest

from gotspec import CallableSandbox, Machine, StopReason, Times, walk
from gotspec.core.errors import PatternStructureError
from gotspec.core.step import State
from gotspec.persistence.serializer import loads_spec
from gotspec.persistence.validator import Validator

# Order-taking machine. Branch patterns are stored as JSON text.
RESTAURANT = json.dumps(
    {
        "name": "restaurant",
        "patternsyntax": "json",
        "nodes": {
            "start": {"branching": {"branches": [{"target": "listen"}]}},
            "listen": {
                "branching": {
                    "type": "message",
                    "branches": [
                        {"pattern": '{"order":"?dish","qty":"?<qty"}', "target": "accept"},
                        {"pattern": '{"order":"?dish"}', "target": "too_many"},
                    ],
                }
            },
            "accept": {
                "action": {"interpreter": "ecmascript", "source": "accept"},
                "branching": {"branches": [{"target": "listen"}]},
            },
            "too_many": {
                "action": {"interpreter": "ecmascript", "source": "reject"},
                "branching": {"branches": [{"target": "listen"}]},
            },
        },
    }
)


@pytest.fixture
def restaurant_sandbox():
    sb = CallableSandbox()

    @sb.register("accept")
    def accept(env):
        env.out({"accepted": env.bindings["?dish"], "qty": env.bindings["?qty"]})
        return {"?<qty": env.bindings["?<qty"], "served": env.bindings.get("served", 0) + 1}

    @sb.register("reject")
    def reject(env):
        env.out({"rejected": env.bindings["?dish"]})
        return {k: v for k, v in env.bindings.items() if k != "?dish"}

    return sb


def test_restaurant(restaurant_sandbox):
    spec = loads_spec(RESTAURANT)
    assert Validator().validate(spec).ok

    times = Times(enabled=True)
    machine = Machine("table-1", spec, State("start", {"?<qty": 5}), sandbox=restaurant_sandbox, times=times)

    outcome = machine.process({"order": "tacos", "qty": 2})
    assert outcome.emitted == [{"accepted": "tacos", "qty": 2}]

    outcome = machine.process({"order": "queso", "qty": 9})
    assert outcome.emitted == [{"rejected": "queso"}]

    outcome = machine.process({"order": "chips", "qty": 1})
    assert outcome.emitted == [{"accepted": "chips", "qty": 1}]
    assert machine.state.bindings["served"] == 2

    summary = times.summary()
    assert summary["walk"]["n"] == 3
    assert summary["sandbox"]["n"] == 3
    assert summary["match"]["n"] >= 3


def test_consumed_message_is_not_presented_twice():
    spec = loads_spec(
        json.dumps(
            {
                "nodes": {
                    "start": {"branching": {"type": "message", "branches": [{"pattern": {"go": "?"}, "target": "second"}]}},
                    "second": {"branching": {"type": "message", "branches": [{"pattern": {"go": "?"}, "target": "third"}]}},
                    "third": {},
                }
            }
        )
    )
    outcome = walk(spec, pending={"go": 1})
    assert outcome.consumed is True
    assert outcome.to.node == "second"


def test_cycle_stops_exactly_at_limit():
    spec = loads_spec(json.dumps({"nodes": {"start": {"branching": {"branches": [{"target": "start"}]}}}}))
    times = Times(enabled=True)
    outcome = walk(spec, times=times)
    assert outcome.stopped_because is StopReason.LIMITED
    assert times.summary()["step"]["n"] == 32


def test_malformed_pattern_aborts_walk():
    spec = loads_spec(
        json.dumps(
            {
                "nodes": {
                    "start": {"branching": {"branches": [{"target": "check"}]}},
                    "check": {"branching": {"type": "message", "branches": [{"pattern": {"a": ["?x", "?y"]}, "target": "start"}]}},
                }
            }
        )
    )
    with pytest.raises(PatternStructureError) as exc:
        walk(spec, pending={"a": [1, 2]})
    assert exc.value.node == "check"
    assert not Validator().analyze(spec).ok


@pytest.mark.stress
def test_many_machines_in_parallel(restaurant_sandbox):
    import threading

    spec = loads_spec(RESTAURANT)
    machines = [Machine(f"table-{i}", spec, State("start", {"?<qty": 5}), sandbox=restaurant_sandbox) for i in range(8)]

    def drive(machine):
        for _ in range(20):
            machine.process({"order": "tacos", "qty": 1})

    threads = [threading.Thread(target=drive, args=(m,)) for m in machines]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert all(m.state.bindings["served"] == 20 for m in machines)
