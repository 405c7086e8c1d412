"""
Core package: values, bindings, the pattern matcher, the spec model, the
stepper and the walker.

Architecture:
- match() is usable on its own, for example to filter a message stream
  against ad hoc patterns
- step() takes one transition; walk() steps until the machine comes to rest

Cross-cutting:
- Fatal errors derive from GotspecError
- Timing goes through an explicit Times collector
"""

from .bindings import Bindings
from .errors import (
    AmbiguousBranchError,
    GotspecError,
    MissingNodeError,
    PatternStructureError,
    ScriptError,
    SpecFormatError,
    StepError,
    UnknownInterpreterError,
    UnknownValueTypeError,
)
from .match import match, matches
from .spec import Action, Branch, Branching, Node, Spec
from .step import DEFAULT_NODE, State, StepOutcome, step
from .value import ValueKind, kind_of
from .walk import DEFAULT_MAX_STEPS, Control, StopReason, WalkOutcome, walk

__all__ = [
    "Bindings",
    "GotspecError",
    "UnknownValueTypeError",
    "PatternStructureError",
    "SpecFormatError",
    "ScriptError",
    "StepError",
    "MissingNodeError",
    "UnknownInterpreterError",
    "AmbiguousBranchError",
    "match",
    "matches",
    "Action",
    "Branch",
    "Branching",
    "Node",
    "Spec",
    "DEFAULT_NODE",
    "State",
    "StepOutcome",
    "step",
    "ValueKind",
    "kind_of",
    "DEFAULT_MAX_STEPS",
    "Control",
    "StopReason",
    "WalkOutcome",
    "walk",
]
