# gotspec/core/value.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Structured value model.

Patterns, messages and bindings all share one universal value shape:
null, boolean, number, string, sequence and mapping. Values are kept as
plain JSON-shaped Python data; ValueKind is the explicit tag that the
matcher dispatches on, so that a bool is never mistaken for a number and
a string never compares equal to a number that prints the same.
"""

import copy
import json
from enum import Enum, auto
from numbers import Real
from typing import Any, Hashable

from gotspec.core.errors import UnknownValueTypeError


class ValueKind(Enum):
    """Tags for the six kinds of structured value."""

    NULL = auto()
    BOOLEAN = auto()
    NUMBER = auto()
    STRING = auto()
    SEQUENCE = auto()
    MAPPING = auto()


def kind_of(value: Any) -> ValueKind:
    """Classify a Python value.

    Args:
        value: Any JSON-shaped value

    Returns:
        The value's kind

    Raises:
        UnknownValueTypeError: If the value has no structured-value kind
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int; test it first.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, Real):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, dict):
        return ValueKind.MAPPING
    # Bindings and other read-only mappings.
    if hasattr(value, "keys") and hasattr(value, "__getitem__"):
        return ValueKind.MAPPING
    raise UnknownValueTypeError(
        f"unknown value type {type(value).__name__}", details={"value": repr(value)}
    )


def is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, Real)


def scalar_equal(a: Any, b: Any) -> bool:
    """Strict scalar equality: kinds must agree before values are compared."""
    ka = kind_of(a)
    if ka is not kind_of(b):
        return False
    return ka is ValueKind.NULL or a == b


def freeze(value: Any) -> Hashable:
    """Build a hashable, kind-tagged key for a value.

    Two values freeze to the same key exactly when they are structurally
    equal under strict kind-and-value equality, with mapping key order and
    sequence container type (list or tuple) ignored.
    """
    kind = kind_of(value)
    if kind is ValueKind.SEQUENCE:
        return (kind.name, tuple(freeze(x) for x in value))
    if kind is ValueKind.MAPPING:
        return (kind.name, frozenset((k, freeze(v)) for k, v in value.items()))
    # int and float hash alike when equal, so 1 and 1.0 share a key.
    return (kind.name, value)


def deep_copy(value: Any) -> Any:
    """Copy a value so that no container is shared with the original."""
    return copy.deepcopy(value)


def to_plain(value: Any) -> Any:
    """Convert a value (possibly holding Bindings or tuples) to plain dicts and lists."""
    kind = kind_of(value)
    if kind is ValueKind.SEQUENCE:
        return [to_plain(x) for x in value]
    if kind is ValueKind.MAPPING:
        return {k: to_plain(v) for k, v in value.items()}
    return value


def canonical(value: Any) -> str:
    """Render a value as canonical JSON text (sorted keys, compact)."""
    return json.dumps(to_plain(value), sort_keys=True, separators=(",", ":"))
