# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "property: mark test as a property-based test")
    config.addinivalue_line("markers", "stress: mark test as a stress test")


@pytest.fixture
def times():
    """An enabled Times collector."""
    from gotspec.runtime.monitor import Times

    return Times(enabled=True)


@pytest.fixture
def sandbox():
    """A CallableSandbox with a few common scripts registered."""
    from gotspec.extensions.sandbox import CallableSandbox

    sb = CallableSandbox()

    @sb.register("double")
    def double(env):
        n = env.bindings["?n"]
        env.out({"doubled": n * 2})
        return {**env.bindings, "?n": n * 2}

    @sb.register("clear")
    def clear(env):
        return {}

    @sb.register("fail")
    def fail(env):
        raise RuntimeError("boom")

    @sb.register("refuse")
    def refuse(env):
        return None

    @sb.register("accept")
    def accept(env):
        return env.bindings

    return sb


@pytest.fixture
def double_spec():
    """A spec that waits for {"double": n}, emits the doubled value and returns to listen."""
    from gotspec.core.spec import Spec

    return Spec.from_dict(
        {
            "name": "double",
            "nodes": {
                "start": {"branching": {"branches": [{"target": "listen"}]}},
                "listen": {
                    "branching": {
                        "type": "message",
                        "branches": [{"pattern": {"double": "?n"}, "target": "process"}],
                    }
                },
                "process": {
                    "action": {"interpreter": "ecmascript", "source": "double"},
                    "branching": {"branches": [{"target": "cleanup"}]},
                },
                "cleanup": {
                    "action": {"interpreter": "ecmascript", "source": "clear"},
                    "branching": {"branches": [{"target": "listen"}]},
                },
            },
        }
    )


@pytest.fixture
def cycle_spec():
    """A spec whose two nodes branch to each other unconditionally."""
    from gotspec.core.spec import Spec

    return Spec.from_dict(
        {
            "nodes": {
                "start": {"branching": {"branches": [{"target": "other"}]}},
                "other": {"branching": {"branches": [{"target": "start"}]}},
            }
        }
    )
