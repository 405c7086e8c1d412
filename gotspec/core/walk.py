# gotspec/core/walk.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Repeated stepping until a machine comes to rest.

A walk stops when a step takes no transition, when a breakpoint fires, or
when the step limit is reached. The limit is a circuit breaker for cyclic
specs and is reported, never raised.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from gotspec.core.spec import Spec
from gotspec.core.step import State, step
from gotspec.core.value import to_plain
from gotspec.extensions.sandbox import ActionSandbox, NoopSandbox
from gotspec.runtime.monitor import Times, resolve_times

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 32

Breakpoint = Callable[[State], bool]


class StopReason(Enum):
    """Why a walk stopped before coming to rest on its own."""

    LIMITED = "limited"
    BREAKPOINT = "breakpoint"


@dataclass
class Control:
    """Per-walk limits.

    Attributes:
        max_steps: Upper bound on steps taken
        breakpoints: Named predicates checked against the state before each step
    """

    max_steps: int = DEFAULT_MAX_STEPS
    breakpoints: Dict[str, Breakpoint] = field(default_factory=dict)

    def hit(self, state: State) -> Optional[str]:
        """Return the id of the first breakpoint that fires for state."""
        for bid, predicate in self.breakpoints.items():
            if predicate(state):
                return bid
        return None


@dataclass
class WalkOutcome:
    to: State
    consumed: bool = False
    emitted: List[Any] = field(default_factory=list)
    stopped_because: Optional[StopReason] = None
    breakpoint_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"to": self.to.to_dict(), "consumed": self.consumed, "emitted": to_plain(self.emitted)}
        if self.stopped_because is not None:
            d["stoppedBecause"] = self.stopped_because.value
        if self.breakpoint_id is not None:
            d["breakpoint"] = self.breakpoint_id
        return d


def walk(
    spec: Spec,
    state: Optional[State] = None,
    pending: Optional[Any] = None,
    max_steps: Optional[int] = None,
    sandbox: Optional[ActionSandbox] = None,
    times: Optional[Times] = None,
    control: Optional[Control] = None,
    props: Optional[Mapping[str, Any]] = None,
) -> WalkOutcome:
    """Step from state until no transition is taken or a limit is hit.

    Args:
        spec: The machine's spec
        state: Starting state (default: node "start", no bindings)
        pending: A message that at most one message-typed branch may consume
        max_steps: Step limit; overrides control.max_steps when given
        sandbox: Runs actions and guards (default: a NoopSandbox)
        times: Optional collector; the walk is timed under "walk"
        control: Step limit and breakpoints
        props: Extra read-only data passed through to scripts

    Returns:
        The last state reached, whether the message was consumed, every
        emitted message in order, and why the walk stopped early, if it did

    Raises:
        Any fatal error raised by step()
    """
    control = control or Control()
    limit = control.max_steps if max_steps is None else max_steps
    sandbox = sandbox or NoopSandbox()
    times = resolve_times(times)

    current = state.copy() if state is not None else State()
    outcome = WalkOutcome(to=current)

    with times.timing("walk"):
        for i in range(limit + 1):
            if i == limit:
                logger.debug("walk stopped at %r after %d steps", current.node, limit)
                outcome.stopped_because = StopReason.LIMITED
                break

            bid = control.hit(current)
            if bid is not None:
                logger.debug("breakpoint %r hit at %r", bid, current.node)
                outcome.stopped_because = StopReason.BREAKPOINT
                outcome.breakpoint_id = bid
                break

            stepped = step(spec, current, pending, sandbox, times, props)
            if stepped is None:
                break

            current = stepped.to
            outcome.to = current
            outcome.emitted.extend(stepped.emitted)
            if stepped.consumed:
                outcome.consumed = True
                pending = None

    return outcome
