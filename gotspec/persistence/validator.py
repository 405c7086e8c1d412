# gotspec/persistence/validator.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Static analysis and validation of specs.

Architecture:
- Validator.analyze() inspects a spec without running it and reports what
  it finds as a SpecAnalysis
- Validator.validate() raises SpecFormatError when the analysis has errors
- Rules live in _DefaultAnalysisRules; each one reads the spec and adds to
  the analysis

Findings:
- Errors make a spec unusable: missing or empty branch targets, unknown
  interpreters, malformed or unparsable branch patterns
- Warnings flag likely mistakes: orphaned nodes, and nodes that pair an
  action with message branching
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from gotspec.core.errors import PatternStructureError, SpecFormatError, UnknownValueTypeError
from gotspec.core.match import check_pattern
from gotspec.core.spec import Action, Spec
from gotspec.core.step import DEFAULT_NODE
from gotspec.extensions.sandbox import INTERPRETERS

logger = logging.getLogger(__name__)


@dataclass
class SpecAnalysis:
    """What static analysis found in a spec.

    Node name lists are sorted.
    """

    node_count: int = 0
    branches: int = 0
    actions: int = 0
    guards: int = 0
    terminal_nodes: List[str] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)
    empty_targets: List[str] = field(default_factory=list)
    missing_targets: List[str] = field(default_factory=list)
    interpreters: List[str] = field(default_factory=list)
    unknown_interpreters: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeCount": self.node_count,
            "branches": self.branches,
            "actions": self.actions,
            "guards": self.guards,
            "terminalNodes": list(self.terminal_nodes),
            "orphans": list(self.orphans),
            "emptyTargets": list(self.empty_targets),
            "missingTargets": list(self.missing_targets),
            "interpreters": list(self.interpreters),
            "unknownInterpreters": list(self.unknown_interpreters),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class Validator:
    """
    Checks specs for problems that would otherwise surface only when a walk
    reaches them.
    """

    def __init__(self) -> None:
        self._rules = _DefaultAnalysisRules

    def analyze(self, spec: Spec) -> SpecAnalysis:
        """
        Inspect a spec without running it.

        :param spec: The spec to analyze.
        :return: Everything found, errors and warnings included.
        """
        analysis = SpecAnalysis(node_count=len(spec.nodes))
        self._rules.count(spec, analysis)
        self._rules.check_targets(spec, analysis)
        self._rules.check_interpreters(spec, analysis)
        self._rules.check_patterns(spec, analysis)
        self._rules.check_message_actions(spec, analysis)
        logger.debug(
            "analyzed spec %r: %d error(s), %d warning(s)", spec.name, len(analysis.errors), len(analysis.warnings)
        )
        return analysis

    def validate(self, spec: Spec) -> SpecAnalysis:
        """
        Analyze a spec and insist it has no errors.

        :param spec: The spec to validate.
        :return: The analysis, when it has no errors.
        :raises SpecFormatError: Listing every error found.
        """
        analysis = self.analyze(spec)
        if analysis.errors:
            raise SpecFormatError(
                f"spec {spec.name!r} has {len(analysis.errors)} error(s): " + "; ".join(analysis.errors),
                details={"errors": list(analysis.errors)},
            )
        return analysis


class _DefaultAnalysisRules:
    """
    Built-in analysis rules.
    """

    @staticmethod
    def count(spec: Spec, analysis: SpecAnalysis) -> None:
        targeted = set()
        terminal = []
        for name, node in spec.nodes.items():
            if node.action is not None:
                analysis.actions += 1
            if node.branching is None or not node.branching.branches:
                terminal.append(name)
                continue
            for branch in node.branching.branches:
                analysis.branches += 1
                targeted.add(branch.target)
                if branch.guard is not None:
                    analysis.guards += 1

        analysis.terminal_nodes = sorted(terminal)
        analysis.orphans = sorted(n for n in spec.nodes if n not in targeted and n != DEFAULT_NODE)
        for name in analysis.orphans:
            analysis.warnings.append(f"node {name!r} is not the target of any branch")

    @staticmethod
    def check_targets(spec: Spec, analysis: SpecAnalysis) -> None:
        empty = set()
        missing = set()
        for name, branch in spec.branches():
            if branch.target == "":
                empty.add(name)
            elif branch.target not in spec.nodes:
                missing.add(branch.target)

        analysis.empty_targets = sorted(empty)
        analysis.missing_targets = sorted(missing)
        for name in analysis.empty_targets:
            analysis.errors.append(f"node {name!r} has a branch with an empty target")
        for target in analysis.missing_targets:
            analysis.errors.append(f"branch target {target!r} is not a node")

    @staticmethod
    def check_interpreters(spec: Spec, analysis: SpecAnalysis) -> None:
        scripts: List[Action] = []
        for node in spec.nodes.values():
            if node.action is not None:
                scripts.append(node.action)
        scripts.extend(branch.guard for _, branch in spec.branches() if branch.guard is not None)

        seen = {str(script.interpreter) for script in scripts}
        analysis.interpreters = sorted(seen)
        analysis.unknown_interpreters = sorted(i for i in seen if i not in INTERPRETERS)
        for interpreter in analysis.unknown_interpreters:
            analysis.errors.append(f"unsupported interpreter {interpreter!r}")

    @staticmethod
    def check_patterns(spec: Spec, analysis: SpecAnalysis) -> None:
        for name, branch in spec.branches():
            try:
                pattern = spec.pattern(name, branch)
            except SpecFormatError as e:
                analysis.errors.append(e.message)
                continue
            if pattern is None:
                continue
            try:
                check_pattern(pattern)
            except (PatternStructureError, UnknownValueTypeError) as e:
                analysis.errors.append(f"bad pattern in branch to {branch.target!r} at node {name!r}: {e.message}")

    @staticmethod
    def check_message_actions(spec: Spec, analysis: SpecAnalysis) -> None:
        for name, node in spec.nodes.items():
            if node.action is not None and node.branching is not None and node.branching.consumes:
                analysis.warnings.append(f"node {name!r} has an action and message branching")

