# gotspec/core/step.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
One step of a machine: run the current node's action, then pick the first
branch whose pattern and guard pass.

A step returns None when no transition happens, which is the normal way a
walk ends.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from gotspec.core.bindings import Bindings
from gotspec.core.errors import AmbiguousBranchError, MissingNodeError, PatternStructureError
from gotspec.core.match import match
from gotspec.core.spec import Spec
from gotspec.core.value import to_plain
from gotspec.extensions.sandbox import ERROR_KEY, ActionSandbox, NoopSandbox, run_action
from gotspec.runtime.monitor import Times, resolve_times

logger = logging.getLogger(__name__)

DEFAULT_NODE = "start"

__all__ = ["DEFAULT_NODE", "ERROR_KEY", "State", "StepOutcome", "step"]


@dataclass
class State:
    """Where a machine is: the current node and its bindings."""

    node: str = DEFAULT_NODE
    bindings: Bindings = field(default_factory=Bindings)

    def __post_init__(self) -> None:
        if not isinstance(self.bindings, Bindings):
            self.bindings = Bindings(self.bindings)

    def copy(self) -> "State":
        # Bindings are immutable; sharing them is a copy.
        return State(self.node, self.bindings)

    def to_dict(self) -> Dict[str, Any]:
        return {"node": self.node, "bs": self.bindings.to_dict()}


@dataclass
class StepOutcome:
    """A transition: the state reached, whether the pending message was
    consumed, and the messages emitted on the way."""

    to: State
    consumed: bool = False
    emitted: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"to": self.to.to_dict(), "consumed": self.consumed, "emitted": to_plain(self.emitted)}


def step(
    spec: Spec,
    state: State,
    pending: Optional[Any] = None,
    sandbox: Optional[ActionSandbox] = None,
    times: Optional[Times] = None,
    props: Optional[Mapping[str, Any]] = None,
) -> Optional[StepOutcome]:
    """Take one step from state.

    Args:
        spec: The machine's spec
        state: Current state; not modified
        pending: The pending message, if any
        sandbox: Runs actions and guards (default: a NoopSandbox)
        times: Optional collector; the step is timed under "step"
        props: Extra read-only data passed through to scripts

    Returns:
        The transition taken, or None when there is none

    Raises:
        MissingNodeError: If state names a node the spec lacks
        UnknownInterpreterError: If an action or guard names an unsupported interpreter
        AmbiguousBranchError: If a branch pattern matches more than one way
        PatternStructureError: If a branch pattern is malformed
        SpecFormatError: If a branch pattern stored as text is not JSON
    """
    times = resolve_times(times)
    with times.timing("step"):
        return _step(spec, state, pending, sandbox or NoopSandbox(), times, props)


def _step(
    spec: Spec,
    state: State,
    pending: Optional[Any],
    sandbox: ActionSandbox,
    times: Times,
    props: Optional[Mapping[str, Any]],
) -> Optional[StepOutcome]:
    name = state.node
    node = spec.nodes.get(name)
    if node is None:
        logger.error("no node %r in spec %r", name, spec.name)
        raise MissingNodeError(f"no node {name!r}", node=name)

    bs = state.bindings
    emitted: List[Any] = []

    if node.action is not None:
        logger.debug("running action at node %r", name)
        execution = run_action(sandbox, node.action, bs, name, props, times)
        if execution.bindings is not None:
            bs = execution.bindings
        emitted.extend(execution.emitted)

    if node.branching is None:
        if emitted:
            logger.debug("node %r has no branching; dropping %d emitted message(s)", name, len(emitted))
        return None

    consuming = node.branching.consumes
    if consuming:
        if pending is None:
            logger.debug("node %r wants a message and none is pending", name)
            return None
        target = pending
    else:
        target = bs.to_dict()

    for branch in node.branching.branches:
        candidate = bs
        pattern = spec.pattern(name, branch)
        if pattern is not None:
            try:
                alternatives = match(pattern, target, bs, times)
            except PatternStructureError as e:
                logger.error("malformed branch pattern at node %r: %s", name, e.message)
                raise e.at_node(name) from e
            if not alternatives:
                continue
            if len(alternatives) > 1:
                logger.error("branch pattern at node %r is ambiguous", name)
                raise AmbiguousBranchError(name, pattern, [a.to_dict() for a in alternatives])
            candidate = alternatives[0]

        if branch.guard is not None:
            execution = run_action(sandbox, branch.guard, candidate, name, props, times)
            if execution.bindings is None:
                logger.debug("guard refused branch to %r at node %r", branch.target, name)
                continue
            candidate = execution.bindings

        logger.debug("node %r -> %r", name, branch.target)
        return StepOutcome(to=State(branch.target, candidate), consumed=consuming, emitted=emitted)

    logger.debug("no branch taken at node %r", name)
    return None
