# gotspec/extensions/sandbox.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Action sandbox interface and implementations.

Architecture:
- ActionSandbox is the single entry point the stepper calls to run an
  action or guard script against a binding set
- The engine never interprets script text itself; a sandbox may be backed
  by an embedded script engine, a restricted DSL, or registered Python
  callables
- run_action() is the stepper-side glue: interpreter check, timing,
  permanent-binding preservation and error recording

Security:
- A script sees private copies of the bindings and properties it is given
  and nothing else of the host process
- Emitted messages are copied out of the script's reach

Cross-cutting:
- Script failures are data (the reserved ``error`` binding), never
  exceptions crossing the step boundary
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from gotspec.core.bindings import Bindings
from gotspec.core.errors import ScriptError, UnknownInterpreterError
from gotspec.core.spec import Action
from gotspec.core.value import ValueKind, canonical, deep_copy, kind_of, to_plain
from gotspec.runtime.monitor import Times, resolve_times

logger = logging.getLogger(__name__)

# "goja" is accepted for backward compatibility only.
INTERPRETERS = frozenset({"ecmascript", "ecmascript-5.1", "goja"})

ERROR_KEY = "error"


def is_permanent(key: str) -> bool:
    """Bindings whose key ends with "!" survive every action."""
    return key.endswith("!")


@dataclass
class SandboxResult:
    """What a sandbox returns for one script run.

    ``bindings`` of None means the script declined to produce bindings,
    which a guard uses to refuse its branch.
    """

    bindings: Optional[Mapping[str, Any]]
    emitted: List[Any] = field(default_factory=list)


@runtime_checkable
class ActionSandbox(Protocol):
    """
    Protocol for executing action and guard scripts.

    Runtime Invariants:
    - Scripts run in isolation from host state
    - Failures raise ScriptError
    - Implementations are not re-entered for the same machine concurrently
    """

    def run(
        self, bindings: Mapping[str, Any], source: Any, interpreter: str, props: Optional[Mapping[str, Any]] = None
    ) -> SandboxResult: ...


class NoopSandbox:
    """A sandbox that returns the given bindings unchanged and emits nothing."""

    def __init__(self, silent: bool = False) -> None:
        """
        :param silent: Suppress the warning logged on every run.
        """
        self.silent = silent

    def run(
        self, bindings: Mapping[str, Any], source: Any, interpreter: str, props: Optional[Mapping[str, Any]] = None
    ) -> SandboxResult:
        if not self.silent:
            logger.warning("NoopSandbox ignoring %s script", interpreter or "unnamed")
        return SandboxResult(dict(bindings), [])


class ActionEnv:
    """The environment a registered callable runs in.

    Attributes:
        bindings: Private deep copy of the current bindings
        props: Private deep copy of the step properties
        emitted: Messages emitted so far, in order
    """

    def __init__(self, bindings: Mapping[str, Any], props: Optional[Mapping[str, Any]] = None) -> None:
        self.bindings: Dict[str, Any] = deep_copy(to_plain(bindings))
        self.props: Dict[str, Any] = deep_copy(to_plain(props or {}))
        self.emitted: List[Any] = []

    def out(self, message: Any) -> None:
        """Emit a message."""
        kind_of(message)
        self.emitted.append(deep_copy(to_plain(message)))


class CallableSandbox:
    """Runs Python callables registered under script source text.

    A callable takes an ActionEnv and returns a mapping of new bindings, or
    None to refuse (guards). Any exception it raises becomes a ScriptError.

    Example:
        sandbox = CallableSandbox()

        @sandbox.register("double")
        def double(env):
            return {**env.bindings, "?n": env.bindings["?n"] * 2}

    Threading/Concurrency Guarantees:
    1. Registration and lookup are lock-guarded
    2. Each run gets its own ActionEnv
    """

    def __init__(self, functions: Optional[Mapping[Any, Callable[[ActionEnv], Any]]] = None) -> None:
        self._functions: Dict[str, Callable[[ActionEnv], Any]] = {}
        self._functions_lock = threading.Lock()
        for source, fn in (functions or {}).items():
            self.register(source, fn)

    @staticmethod
    def _key(source: Any) -> str:
        return source if isinstance(source, str) else canonical(source)

    def register(self, source: Any, fn: Optional[Callable[[ActionEnv], Any]] = None):
        """Register fn under source; usable as a decorator when fn is omitted."""
        if fn is None:

            def decorator(f: Callable[[ActionEnv], Any]) -> Callable[[ActionEnv], Any]:
                self.register(source, f)
                return f

            return decorator
        with self._functions_lock:
            self._functions[self._key(source)] = fn
        return fn

    def run(
        self, bindings: Mapping[str, Any], source: Any, interpreter: str, props: Optional[Mapping[str, Any]] = None
    ) -> SandboxResult:
        with self._functions_lock:
            fn = self._functions.get(self._key(source))
        if fn is None:
            raise ScriptError(f"no function registered for source {source!r}")

        env = ActionEnv(bindings, props)
        try:
            result = fn(env)
        except ScriptError:
            raise
        except Exception as e:
            raise ScriptError(f"{type(e).__name__}: {e}") from e

        if result is None:
            return SandboxResult(None, env.emitted)
        if kind_of(result) is not ValueKind.MAPPING:
            raise ScriptError(f"script returned {type(result).__name__}, not bindings")
        return SandboxResult(deep_copy(to_plain(result)), env.emitted)


@dataclass
class Execution:
    """Outcome of running an action or guard through run_action()."""

    bindings: Optional[Bindings]
    emitted: List[Any] = field(default_factory=list)
    error: Optional[str] = None


def check_interpreter(interpreter: Any, node: Optional[str] = None) -> None:
    """
    :raises UnknownInterpreterError: If interpreter is not a recognized dialect.
    """
    if interpreter not in INTERPRETERS:
        raise UnknownInterpreterError(interpreter, node=node)


def _restore_permanent(bindings: Bindings, permanent: Dict[str, Any]) -> Bindings:
    for key, value in permanent.items():
        bindings = bindings.extend(key, value)
    return bindings


def run_action(
    sandbox: ActionSandbox,
    action: Action,
    bindings: Bindings,
    node: Optional[str] = None,
    props: Optional[Mapping[str, Any]] = None,
    times: Optional[Times] = None,
) -> Execution:
    """Run an action or guard for the stepper.

    A ScriptError is recorded under the ``error`` binding and does not
    propagate; the script's effects are void beyond any bindings the sandbox
    attached to the error.

    Args:
        sandbox: The sandbox to run the script in
        action: The action or guard
        bindings: Current bindings
        node: Name of the node being stepped, for diagnostics
        props: Extra read-only data for the script
        times: Optional collector; the run is timed under "sandbox"

    Returns:
        The resulting Execution; ``bindings`` is None when a guard refuses

    Raises:
        UnknownInterpreterError: If the action names an unsupported dialect
    """
    check_interpreter(action.interpreter, node)
    permanent = {k: v for k, v in bindings.items() if is_permanent(k)}

    with resolve_times(times).timing("sandbox"):
        try:
            result = sandbox.run(bindings, action.source, action.interpreter, props)
        except ScriptError as e:
            logger.warning("script error at node %r: %s", node, e.message)
            base = Bindings(e.bindings) if e.bindings is not None else bindings
            return Execution(_restore_permanent(base.extend(ERROR_KEY, e.message), permanent), [], e.message)

    if result.bindings is None:
        return Execution(None, list(result.emitted))
    return Execution(_restore_permanent(Bindings(result.bindings), permanent), list(result.emitted))
