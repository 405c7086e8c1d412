# gotspec/runtime/machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
A machine instance: an id, a spec and the State it exclusively owns.

Machine.process() walks from the current state with one message and adopts
the state the walk reaches. Walks on one instance are serialized; separate
instances may be driven from separate threads.
"""

import logging
import threading
from enum import Enum, auto
from typing import Any, Dict, Mapping, Optional

from gotspec.core.errors import GotspecError
from gotspec.core.spec import Spec
from gotspec.core.step import State
from gotspec.core.walk import Control, WalkOutcome, walk
from gotspec.extensions.sandbox import ActionSandbox
from gotspec.runtime.monitor import Times

logger = logging.getLogger(__name__)


class MachineStatus(Enum):
    """Lifecycle of a machine instance between walks."""

    IDLE = auto()  # Ready for a message
    WALKING = auto()  # A walk is in flight
    FAILED = auto()  # Last walk raised a fatal error


class Machine:
    """
    One machine instance.

    Class Invariants:
    1. The state is only replaced, never mutated in place
    2. At most one walk is in flight per instance
    3. A failed walk leaves the previous state in place

    Threading/Concurrency Guarantees:
    1. process() holds the instance lock for the whole walk
    2. state and status reads are safe during a walk
    """

    def __init__(
        self,
        id: str,
        spec: Spec,
        state: Optional[State] = None,
        sandbox: Optional[ActionSandbox] = None,
        times: Optional[Times] = None,
        control: Optional[Control] = None,
    ) -> None:
        self.id = id
        self.spec = spec
        self._state = state.copy() if state is not None else State()
        self._sandbox = sandbox
        self._times = times
        self._control = control
        self._status = MachineStatus.IDLE
        self._walk_lock = threading.Lock()

    @property
    def state(self) -> State:
        return self._state.copy()

    @property
    def status(self) -> MachineStatus:
        return self._status

    def process(self, message: Any = None, props: Optional[Mapping[str, Any]] = None) -> WalkOutcome:
        """Walk from the current state with message pending.

        Args:
            message: The message to offer, or None to walk on bindings alone
            props: Extra read-only data passed through to scripts

        Returns:
            The walk outcome; its ``to`` is now this machine's state

        Raises:
            GotspecError: Any fatal step error, after marking the machine FAILED
        """
        with self._walk_lock:
            self._status = MachineStatus.WALKING
            try:
                outcome = walk(
                    self.spec,
                    self._state,
                    message,
                    sandbox=self._sandbox,
                    times=self._times,
                    control=self._control,
                    props=props,
                )
            except GotspecError as e:
                logger.error("machine %r failed at node %r: %s", self.id, self._state.node, e.message)
                self._status = MachineStatus.FAILED
                raise
            self._state = outcome.to
            self._status = MachineStatus.IDLE
            logger.debug("machine %r now at %r", self.id, self._state.node)
            return outcome

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "state": self._state.to_dict()}
