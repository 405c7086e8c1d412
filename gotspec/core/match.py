# gotspec/core/match.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Structural pattern matching.

Architecture:
- match() unifies a pattern against a message under a binding set and
  returns every consistent way to do so as a list of Bindings
- Dispatch is on the ValueKind of the pattern
- Mappings are matched key by key, sequences as multisets

Complexity:
- At most one variable element per sequence level and at most one property
  variable per mapping. These restrictions keep backtracking polynomial in
  the number of elements; a pattern that breaks them raises
  PatternStructureError rather than quietly failing to match.
- Sequence assignment is enumerated with an explicit worklist, so call
  depth grows with pattern nesting and never with element count.
"""

import operator
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from gotspec.core.bindings import Bindings, VariableKind, is_optional, is_variable, parse_inequality, variable_kind
from gotspec.core.errors import PatternStructureError
from gotspec.core.value import ValueKind, freeze, is_number, kind_of, scalar_equal
from gotspec.runtime.monitor import Times, resolve_times

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "!=": operator.ne,
}


def match(pattern: Any, message: Any, bindings: Optional[Any] = None, times: Optional[Times] = None) -> List[Bindings]:
    """Match a message against a pattern.

    Args:
        pattern: Structured value, possibly holding variable tokens
        message: Structured value to match
        bindings: Initial bindings (a mapping); not modified
        times: Optional collector; the call is timed under "match"

    Returns:
        Alternative binding sets, in discovery order. An empty list means
        no match.

    Raises:
        PatternStructureError: If the pattern is malformed, whatever the message
        UnknownValueTypeError: If pattern or message hold non-structured values
    """
    if bindings is None:
        bs = Bindings()
    elif isinstance(bindings, Bindings):
        bs = bindings
    else:
        bs = Bindings(bindings)
    with resolve_times(times).timing("match"):
        check_pattern(pattern)
        return _dedupe(_match(pattern, message, bs))


def matches(pattern: Any, message: Any) -> List[Bindings]:
    """Match with empty initial bindings."""
    return match(pattern, message)


def check_pattern(pattern: Any) -> None:
    """Check every mapping and sequence level of a pattern for extra variables.

    Raises:
        PatternStructureError: Naming the first malformed fragment
        UnknownValueTypeError: If the pattern holds non-structured values
    """
    pending = [pattern]
    while pending:
        fragment = pending.pop()
        kind = kind_of(fragment)
        if kind is ValueKind.MAPPING:
            _property_variable(fragment)
            pending.extend(fragment.values())
        elif kind is ValueKind.SEQUENCE:
            _split_variable(fragment)
            pending.extend(fragment)


def _match(pattern: Any, message: Any, bs: Bindings) -> List[Bindings]:
    kind = kind_of(pattern)
    if kind is ValueKind.STRING and is_variable(pattern):
        return _match_variable(pattern, message, bs)
    if kind is ValueKind.MAPPING:
        return _match_mapping(pattern, message, bs)
    if kind is ValueKind.SEQUENCE:
        return _match_sequence(pattern, message, bs)
    return [bs] if scalar_equal(pattern, message) else []


def _match_variable(token: str, message: Any, bs: Bindings) -> List[Bindings]:
    kind = variable_kind(token)
    if kind is VariableKind.ANONYMOUS:
        return [bs]

    if kind is VariableKind.INEQUALITY:
        inequality = _inequal(token, message, bs)
        if inequality is not None:
            return inequality

    if token in bs:
        # Re-unify: the bound value acts as the pattern.
        return _match(bs[token], message, bs)
    kind_of(message)  # refuse to bind non-structured values
    return [bs.extend(token, message)]


def _inequal(token: str, message: Any, bs: Bindings) -> Optional[List[Bindings]]:
    """Apply inequality semantics, or return None when they do not apply.

    The threshold is the value bound under the literal token itself (e.g.
    "?<n"). Without a numeric threshold and a numeric message, the token is
    handled as an ordinary variable by the caller.
    """
    parsed = parse_inequality(token)
    if parsed is None:
        return None
    if token not in bs:
        return None
    threshold = bs[token]
    if not is_number(threshold) or not is_number(message):
        return None

    op, stripped = parsed
    if not _COMPARATORS[op](message, threshold):
        return []
    if stripped in bs:
        return [bs] if scalar_equal(bs[stripped], message) else []
    return [bs.extend(stripped, message)]


def _property_variable(pattern: Dict[str, Any]) -> Optional[str]:
    found = None
    for key in pattern:
        if is_variable(key):
            if found is not None:
                raise PatternStructureError(
                    f"can't have more than one property variable ({found!r} and {key!r})", pattern=pattern
                )
            found = key
    return found


def _match_mapping(pattern: Dict[str, Any], message: Any, bs: Bindings) -> List[Bindings]:
    property_variable = _property_variable(pattern)
    if kind_of(message) is not ValueKind.MAPPING:
        return []
    if not pattern:
        return [bs]

    bss = [bs]
    for key, sub in pattern.items():
        if key == property_variable:
            continue
        if key not in message:
            if is_optional(sub):
                continue
            return []
        bss = _match_each(bss, sub, message[key])
        if not bss:
            return []

    if property_variable is None:
        return bss

    sub = pattern[property_variable]
    gathered: List[Bindings] = []
    for fk, fv in message.items():
        ext = _match_each(bss, property_variable, fk)
        if ext:
            gathered.extend(_match_each(ext, sub, fv))
    return gathered


def _match_each(bss: List[Bindings], pattern: Any, message: Any) -> List[Bindings]:
    acc: List[Bindings] = []
    for bs in bss:
        acc.extend(_match(pattern, message, bs))
    return acc


def _split_variable(pattern: Sequence[Any]) -> Tuple[Optional[str], List[Any]]:
    variable = None
    rest = []
    for x in pattern:
        if is_variable(x):
            if variable is not None:
                raise PatternStructureError(
                    f"can't have more than one variable in a sequence ({variable!r} and {x!r})",
                    pattern=list(pattern),
                )
            variable = x
            continue
        rest.append(x)
    return variable, rest


def _match_sequence(pattern: Sequence[Any], message: Any, bs: Bindings) -> List[Bindings]:
    variable, constants = _split_variable(pattern)
    if kind_of(message) is not ValueKind.SEQUENCE:
        return []

    # Each frontier entry is one partial assignment: the bindings so far and
    # the indexes of message elements not yet claimed.
    frontier: List[Tuple[Bindings, Tuple[int, ...]]] = [(bs, tuple(range(len(message))))]
    for element in constants:
        advanced = []
        seen = set()
        for fbs, remaining in frontier:
            for pos, idx in enumerate(remaining):
                for ext in _match(element, message[idx], fbs):
                    left = remaining[:pos] + remaining[pos + 1:]
                    key = (_freeze_bindings(ext), left)
                    if key in seen:
                        continue
                    seen.add(key)
                    advanced.append((ext, left))
        if not advanced:
            return []
        frontier = advanced

    if variable is None:
        return [fbs for fbs, _ in frontier]

    acc: List[Bindings] = []
    for fbs, remaining in frontier:
        some = False
        for idx in remaining:
            found = _match(variable, message[idx], fbs)
            if found:
                some = True
                acc.extend(found)
        if not some and is_optional(variable):
            acc.append(fbs)
    return acc


def _freeze_bindings(bs: Bindings):
    return frozenset((k, freeze(v)) for k, v in bs.items())


def _dedupe(bss: List[Bindings]) -> List[Bindings]:
    seen = set()
    acc = []
    for bs in bss:
        key = _freeze_bindings(bs)
        if key not in seen:
            seen.add(key)
            acc.append(bs)
    return acc
