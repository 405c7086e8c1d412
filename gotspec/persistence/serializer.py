# gotspec/persistence/serializer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Loading and dumping spec and state documents as JSON.

Spec documents carry a top-level ``nodes`` mapping; unknown top-level keys
are tolerated. State documents are ``{"node": ..., "bs": {...}}``, with
``bindings`` accepted in place of ``bs`` on load.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from gotspec.core.errors import SpecFormatError, UnknownValueTypeError
from gotspec.core.spec import Spec
from gotspec.core.step import DEFAULT_NODE, State
from gotspec.core.value import kind_of

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _loads(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise SpecFormatError(f"{what} is not JSON: {e}") from e


def _read(path: PathLike) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SpecFormatError(f"can't read {path}: {e}", details={"path": str(path)}) from e


def spec_from_dict(data: Mapping[str, Any]) -> Spec:
    return Spec.from_dict(data)


def spec_to_dict(spec: Spec) -> Dict[str, Any]:
    return spec.to_dict()


def loads_spec(text: str) -> Spec:
    """Parse a spec from JSON text.

    Raises:
        SpecFormatError: If the text is not JSON or not a spec
    """
    return spec_from_dict(_loads(text, "spec"))


def load_spec(path: PathLike) -> Spec:
    """Load a spec from a JSON file.

    Raises:
        SpecFormatError: If the file can't be read or is not a spec
    """
    spec = loads_spec(_read(path))
    logger.debug("loaded spec %r with %d node(s) from %s", spec.name, len(spec.nodes), path)
    return spec


def dumps_spec(spec: Spec, indent: int = 2) -> str:
    return json.dumps(spec_to_dict(spec), indent=indent)


def state_from_dict(data: Mapping[str, Any]) -> State:
    """Build a State from ``{"node", "bs"}`` (or ``{"node", "bindings"}``).

    A missing node defaults to "start".

    Raises:
        SpecFormatError: If the document is malformed
    """
    if not isinstance(data, Mapping):
        raise SpecFormatError("state must be a mapping")
    node = data.get("node", DEFAULT_NODE)
    if not isinstance(node, str):
        raise SpecFormatError(f"state node must be a string, not {type(node).__name__}")
    bindings = data.get("bs")
    if bindings is None:
        bindings = data.get("bindings") or {}
    if not isinstance(bindings, Mapping):
        raise SpecFormatError("state bindings must be a mapping")
    try:
        for value in bindings.values():
            kind_of(value)
    except UnknownValueTypeError as e:
        raise SpecFormatError(f"bad state bindings: {e.message}") from e
    return State(node, dict(bindings))


def state_to_dict(state: State) -> Dict[str, Any]:
    return state.to_dict()


def loads_state(text: str) -> State:
    return state_from_dict(_loads(text, "state"))


def load_state(path: PathLike) -> State:
    """Load a State from a JSON file."""
    return loads_state(_read(path))
