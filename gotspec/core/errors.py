# gotspec/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Dict, List, Optional


class GotspecError(Exception):
    """
    Base exception class for errors raised by the matcher, the stepper and
    the walker. "No transition" and step-limit exhaustion are not errors and
    never raise.
    """

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnknownValueTypeError(GotspecError):
    """
    Raised when a pattern, message or binding holds a Python object that is
    not one of the structured value kinds.
    """


class PatternStructureError(GotspecError):
    """
    Raised when a pattern is malformed: more than one variable element in a
    sequence, or more than one property variable in a mapping. A malformed
    pattern is never reported as "no match".
    """

    def __init__(self, message: str = "", pattern: Any = None, node: Optional[str] = None) -> None:
        details = {"pattern": pattern}
        if node is not None:
            details["node"] = node
        super().__init__(message, details)
        self.pattern = pattern
        self.node = node

    def at_node(self, node: str) -> "PatternStructureError":
        """Return a copy of this error that names the node whose branch held the pattern."""
        return PatternStructureError(f"{self.message} (node {node!r})", pattern=self.pattern, node=node)


class SpecFormatError(GotspecError):
    """
    Raised when a spec or state document cannot be loaded, or when a branch
    pattern stored as text cannot be parsed.
    """


class ScriptError(GotspecError):
    """
    Raised by an action sandbox when a script fails. The stepper records the
    message under the reserved ``error`` binding instead of aborting.

    ``bindings`` holds whatever bindings the sandbox explicitly returned
    alongside the failure, if any.
    """

    def __init__(self, message: str = "", bindings: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.bindings = bindings


class StepError(GotspecError):
    """
    Base class for errors that abort a step. Carries the name of the node
    being stepped.
    """

    def __init__(self, message: str = "", node: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        details = dict(details or {})
        if node is not None:
            details["node"] = node
        super().__init__(message, details)
        self.node = node


class MissingNodeError(StepError):
    """
    Raised when a state names a node absent from the spec.
    """


class UnknownInterpreterError(StepError):
    """
    Raised when an action or guard names an interpreter that is not one of
    the recognized dialect identifiers.
    """

    def __init__(self, interpreter: Any, node: Optional[str] = None) -> None:
        super().__init__(
            f"unsupported interpreter {interpreter!r} at node {node!r}",
            node=node,
            details={"interpreter": interpreter},
        )
        self.interpreter = interpreter


class AmbiguousBranchError(StepError):
    """
    Raised when a branch pattern yields more than one set of bindings.
    """

    def __init__(self, node: str, pattern: Any, alternatives: List[Any]) -> None:
        super().__init__(
            f"branch pattern at node {node!r} matched {len(alternatives)} ways",
            node=node,
            details={"pattern": pattern, "alternatives": alternatives},
        )
        self.pattern = pattern
        self.alternatives = alternatives
