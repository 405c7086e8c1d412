"""gotspec: rule-driven, message-consuming state machines

This package steps machine instances through specs: graphs of named nodes,
each with an optional scripted action and ordered, pattern-gated branches.

Responsibilities:
    - Structural pattern matching with variables, usable on its own
    - Stepping and walking machines through specs
    - Running actions and guards through a pluggable sandbox
    - Loading and statically checking spec documents

Interactions:
    - Client code through the public API or ``python -m gotspec``
    - Action sandboxes for script execution
    - Logging system for diagnostics

Cross-cutting Concerns:
    Thread Safety:
        - match, step and walk share no mutable state
        - Machine serializes walks per instance

    Error Handling:
        - Structured error hierarchy rooted at GotspecError
        - Script failures recorded under the ``error`` binding

    Logging:
        - One module-level logger per module; handlers are left to the host
"""

from gotspec.core import (
    DEFAULT_MAX_STEPS,
    DEFAULT_NODE,
    AmbiguousBranchError,
    Bindings,
    Control,
    GotspecError,
    MissingNodeError,
    PatternStructureError,
    ScriptError,
    Spec,
    SpecFormatError,
    State,
    StepError,
    StepOutcome,
    StopReason,
    UnknownInterpreterError,
    UnknownValueTypeError,
    WalkOutcome,
    match,
    matches,
    step,
    walk,
)
from gotspec.extensions.sandbox import CallableSandbox, NoopSandbox
from gotspec.runtime.machine import Machine, MachineStatus
from gotspec.runtime.monitor import Times

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_MAX_STEPS",
    "DEFAULT_NODE",
    "AmbiguousBranchError",
    "Bindings",
    "CallableSandbox",
    "Control",
    "GotspecError",
    "Machine",
    "MachineStatus",
    "MissingNodeError",
    "NoopSandbox",
    "PatternStructureError",
    "ScriptError",
    "Spec",
    "SpecFormatError",
    "State",
    "StepError",
    "StepOutcome",
    "StopReason",
    "Times",
    "UnknownInterpreterError",
    "UnknownValueTypeError",
    "WalkOutcome",
    "match",
    "matches",
    "step",
    "walk",
]
