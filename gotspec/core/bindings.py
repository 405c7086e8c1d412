# gotspec/core/bindings.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Binding sets and pattern-variable tokens.

A binding set maps variable tokens (with their leading ``?`` or ``??``)
to bound values. Bindings are immutable: every extension returns a new
instance and leaves the receiver untouched, so alternatives produced by
backtracking never share mutable state.
"""

from collections.abc import Mapping
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional, Tuple

ANONYMOUS = "?"

# Longer operators first so that "<=" is not read as "<" followed by "=".
INEQUALITY_OPERATORS = ("<=", ">=", "!=", "<", ">")


class VariableKind(Enum):
    """Classes of pattern-variable token."""

    ANONYMOUS = auto()  # "?": matches anything, binds nothing
    OPTIONAL = auto()  # "??x": zero-or-one in sequences, absent key tolerated in mappings
    INEQUALITY = auto()  # "?<x", "?<=x", "?>x", "?>=x", "?!=x"
    ORDINARY = auto()  # "?x"


def is_variable(x: Any) -> bool:
    """Report whether x is a pattern variable token (a string starting with '?')."""
    return isinstance(x, str) and x.startswith("?")


def is_optional(x: Any) -> bool:
    return isinstance(x, str) and x.startswith("??")


def parse_inequality(token: str) -> Optional[Tuple[str, str]]:
    """Split an inequality token into its operator and operator-stripped name.

    Args:
        token: A variable token such as "?<=n"

    Returns:
        (operator, stripped token), e.g. ("<=", "?n"), or None if the token
        is not an inequality variable
    """
    if not is_variable(token) or is_optional(token):
        return None
    body = token[1:]
    for op in INEQUALITY_OPERATORS:
        if body.startswith(op) and len(body) > len(op):
            return op, "?" + body[len(op):]
    return None


def variable_kind(token: Any) -> Optional[VariableKind]:
    """Classify a token, or return None for a constant."""
    if not is_variable(token):
        return None
    if token == ANONYMOUS:
        return VariableKind.ANONYMOUS
    if is_optional(token):
        return VariableKind.OPTIONAL
    if parse_inequality(token) is not None:
        return VariableKind.INEQUALITY
    return VariableKind.ORDINARY


class Bindings(Mapping):
    """An immutable mapping from variable tokens to values.

    Class Invariants:
    1. Never mutated after construction
    2. At most one value per token

    Threading/Concurrency Guarantees:
    1. Safe to share between threads (read-only)

    Performance Characteristics:
    1. O(1) lookup
    2. O(n) extension where n is the number of bindings (copy-on-write)
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping] = None, **kwargs: Any) -> None:
        merged: Dict[str, Any] = dict(data or {})
        merged.update(kwargs)
        self._data = merged

    def __getitem__(self, token: str) -> Any:
        return self._data[token]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Bindings({self._data!r})"

    def extend(self, token: str, value: Any) -> "Bindings":
        """Return new bindings with token bound to value.

        Args:
            token: Variable token (or any binding key)
            value: Value to bind

        Returns:
            A new Bindings instance; the receiver is unchanged
        """
        data = dict(self._data)
        data[token] = value
        return Bindings(data)

    def extendm(self, *pairs: Any) -> "Bindings":
        """Return new bindings extended with alternating key/value arguments.

        Raises:
            ValueError: If given an odd number of arguments or a non-string key
        """
        if len(pairs) % 2:
            raise ValueError("extendm needs an even number of arguments")
        data = dict(self._data)
        for i in range(0, len(pairs), 2):
            key = pairs[i]
            if not isinstance(key, str):
                raise ValueError(f"binding key must be a string, not {type(key).__name__}")
            data[key] = pairs[i + 1]
        return Bindings(data)

    def remove(self, *tokens: str) -> "Bindings":
        """Return new bindings without the given keys."""
        return Bindings({k: v for k, v in self._data.items() if k not in tokens})

    def delete_except(self, *keep: str) -> "Bindings":
        """Return new bindings holding only the given keys."""
        return Bindings({k: v for k, v in self._data.items() if k in keep})

    def to_dict(self) -> Dict[str, Any]:
        """Return a shallow, mutable dict copy."""
        return dict(self._data)
