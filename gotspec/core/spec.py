# gotspec/core/spec.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Spec model: named nodes, each with an optional action and optional
branching.

A spec holds no machine state. Branch patterns are either structured
values or, when the spec sets ``parsepatterns`` or ``patternsyntax:
"json"``, JSON text that is parsed when the branch is tried.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple

from gotspec.core.errors import SpecFormatError

DEFAULT_BRANCH_TYPE = "bindings"
MESSAGE_BRANCH_TYPE = "message"
BRANCH_TYPES = (MESSAGE_BRANCH_TYPE, DEFAULT_BRANCH_TYPE)


@dataclass(frozen=True)
class Action:
    """Scripted action or guard: opaque source text plus the dialect that runs it."""

    interpreter: str
    source: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str) -> "Action":
        if not isinstance(data, Mapping):
            raise SpecFormatError(f"{where} must be a mapping")
        if "source" not in data:
            raise SpecFormatError(f"{where} has no source")
        return cls(interpreter=data.get("interpreter", ""), source=data["source"])

    def to_dict(self) -> Dict[str, Any]:
        return {"interpreter": self.interpreter, "source": self.source}


@dataclass(frozen=True)
class Branch:
    """A pattern-gated, optionally guarded transition to ``target``.

    A branch whose pattern is None (absent or null) is not pattern-gated.
    """

    target: str
    pattern: Any = None
    guard: Optional[Action] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str) -> "Branch":
        if not isinstance(data, Mapping):
            raise SpecFormatError(f"{where} must be a mapping")
        target = data.get("target")
        if not isinstance(target, str):
            raise SpecFormatError(f"{where} has no target")
        guard = data.get("guard")
        return cls(
            target=target,
            pattern=data.get("pattern"),
            guard=Action.from_dict(guard, f"{where} guard") if guard is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"target": self.target}
        if self.pattern is not None:
            d["pattern"] = self.pattern
        if self.guard is not None:
            d["guard"] = self.guard.to_dict()
        return d


@dataclass(frozen=True)
class Branching:
    """Ordered branches plus what they match against."""

    branches: Tuple[Branch, ...] = ()
    type: str = DEFAULT_BRANCH_TYPE

    @property
    def consumes(self) -> bool:
        """Message branching matches (and consumes) the pending message."""
        return self.type == MESSAGE_BRANCH_TYPE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str) -> "Branching":
        if not isinstance(data, Mapping):
            raise SpecFormatError(f"{where} must be a mapping")
        branch_type = data.get("type") or DEFAULT_BRANCH_TYPE
        if branch_type not in BRANCH_TYPES:
            raise SpecFormatError(f"{where} has unknown type {branch_type!r}")
        raw = data.get("branches") or []
        if not isinstance(raw, list):
            raise SpecFormatError(f"{where} branches must be a list")
        return cls(
            branches=tuple(Branch.from_dict(b, f"{where} branch {i}") for i, b in enumerate(raw)),
            type=branch_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "branches": [b.to_dict() for b in self.branches]}


@dataclass(frozen=True)
class Node:
    action: Optional[Action] = None
    branching: Optional[Branching] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], name: str) -> "Node":
        if not isinstance(data, Mapping):
            raise SpecFormatError(f"node {name!r} must be a mapping")
        action = data.get("action")
        branching = data.get("branching")
        return cls(
            action=Action.from_dict(action, f"node {name!r} action") if action is not None else None,
            branching=Branching.from_dict(branching, f"node {name!r} branching") if branching is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.action is not None:
            d["action"] = self.action.to_dict()
        if self.branching is not None:
            d["branching"] = self.branching.to_dict()
        return d


@dataclass
class Spec:
    """A machine specification: a graph of named nodes.

    Class Invariants:
    1. Holds no machine state
    2. Branch patterns are structured values unless ``parses_patterns``

    Threading/Concurrency Guarantees:
    1. Read-only during steps; safe to share between machines
    """

    nodes: Dict[str, Node] = field(default_factory=dict)
    name: str = ""
    version: str = ""
    doc: str = ""
    parsepatterns: bool = False
    patternsyntax: str = ""

    @property
    def parses_patterns(self) -> bool:
        return self.parsepatterns or self.patternsyntax == "json"

    def pattern(self, node: str, branch: Branch) -> Any:
        """Return the branch's pattern as a structured value.

        Raises:
            SpecFormatError: If the pattern is stored as text that is not JSON
        """
        if not self.parses_patterns or not isinstance(branch.pattern, str):
            return branch.pattern
        try:
            return _parse_pattern_text(branch.pattern)
        except ValueError as e:
            raise SpecFormatError(
                f"bad pattern at node {node!r}: {e}", details={"node": node, "pattern": branch.pattern}
            ) from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Spec":
        """Build a spec from a structured-value document.

        Unknown top-level keys are ignored.

        Raises:
            SpecFormatError: If the document is malformed
        """
        if not isinstance(data, Mapping):
            raise SpecFormatError("spec must be a mapping")
        nodes = data.get("nodes")
        if not isinstance(nodes, Mapping):
            raise SpecFormatError("spec has no nodes mapping")
        return cls(
            nodes={name: Node.from_dict(node, name) for name, node in nodes.items()},
            name=data.get("name", "") or "",
            version=str(data.get("version", "") or ""),
            doc=data.get("doc", "") or "",
            parsepatterns=bool(data.get("parsepatterns", False)),
            patternsyntax=data.get("patternsyntax", "") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"nodes": {name: node.to_dict() for name, node in self.nodes.items()}}
        for key in ("name", "version", "doc", "patternsyntax"):
            if getattr(self, key):
                d[key] = getattr(self, key)
        if self.parsepatterns:
            d["parsepatterns"] = True
        return d

    def branches(self) -> List[Tuple[str, Branch]]:
        """Every (node name, branch) pair in node order."""
        acc = []
        for name, node in self.nodes.items():
            if node.branching is not None:
                acc.extend((name, b) for b in node.branching.branches)
        return acc


@lru_cache(maxsize=1024)
def _parse_pattern_text(text: str) -> Any:
    return json.loads(text)
