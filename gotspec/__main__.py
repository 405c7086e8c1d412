#!/usr/bin/env python3
"""
Command line for ad hoc matching, walking and checking specs.

Usage:
    python -m gotspec match -p PATTERN -m MESSAGE [-b BINDINGS] [-w WANTED] [--bench N]
    python -m gotspec walk SPECFILE [-s STATE] [-m MESSAGE] [--max-steps N]
    python -m gotspec check SPECFILE

Examples:
    # Every way a pattern matches
    python -m gotspec match -p '["a","?x"]' -m '["a","b","c"]'

    # Exit 1 unless the result is exactly the wanted set
    python -m gotspec match -p '{"n":"?<n"}' -m '{"n":3}' -b '{"?<n":10}' \
        -w '[{"?n":3,"?<n":10}]'

    # Walk a spec from its start node with one message
    python -m gotspec walk double.json -m '{"double":3}'
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from gotspec.core.errors import GotspecError
from gotspec.core.match import match
from gotspec.core.value import canonical
from gotspec.core.walk import DEFAULT_MAX_STEPS, walk
from gotspec.extensions.sandbox import NoopSandbox
from gotspec.persistence.serializer import load_spec, loads_state
from gotspec.persistence.validator import Validator
from gotspec.runtime.monitor import Times

logger = logging.getLogger("gotspec")


def parse_json(text: str, what: str) -> Any:
    """Parse a JSON command line argument."""
    try:
        return json.loads(text)
    except ValueError as e:
        raise ValueError(f"{what} is not JSON: {e}") from e


def cmd_match(args) -> int:
    """Match a message against a pattern and print the alternatives."""
    pattern = parse_json(args.pattern, "pattern")
    message = parse_json(args.message, "message")
    bindings = parse_json(args.bindings, "bindings")

    times = Times(enabled=args.bench > 0)
    for _ in range(args.bench):
        match(pattern, message, bindings, times)
    if args.bench > 0:
        entry = times.summary().get("match", {"ms": 0.0, "n": 0})
        logger.info("%d iterations, %.4f mean ms/match", entry["n"], entry["ms"] / max(entry["n"], 1))

    bss = match(pattern, message, bindings)
    got: List[Any] = [bs.to_dict() for bs in bss]
    print(json.dumps(got))

    if args.wanted is not None:
        wanted = parse_json(args.wanted, "wanted")
        if sorted(canonical(bs) for bs in wanted) != sorted(canonical(bs) for bs in got):
            print(f"wanted {json.dumps(wanted)}", file=sys.stderr)
            return 1
    return 0


def cmd_walk(args) -> int:
    """Walk a spec and print the outcome."""
    spec = load_spec(args.spec)
    state = loads_state(args.state) if args.state else None
    message = parse_json(args.message, "message") if args.message else None

    outcome = walk(spec, state, message, max_steps=args.max_steps, sandbox=NoopSandbox(silent=not args.verbose))
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0


def cmd_check(args) -> int:
    """Analyze a spec and print the findings."""
    spec = load_spec(args.spec)
    analysis = Validator().analyze(spec)
    print(json.dumps(analysis.to_dict(), indent=2))
    return 0 if analysis.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m gotspec",
        description="Match patterns and walk machine specs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    subparsers = parser.add_subparsers(dest="action", required=True)

    match_parser = subparsers.add_parser("match", help="Match a message against a pattern")
    match_parser.add_argument("-p", "--pattern", required=True, help="Pattern in JSON")
    match_parser.add_argument("-m", "--message", required=True, help="Message in JSON")
    match_parser.add_argument("-b", "--bindings", default="{}", help="Initial bindings in JSON")
    match_parser.add_argument("-w", "--wanted", help="Wanted alternatives in JSON; exit 1 on mismatch")
    match_parser.add_argument("--bench", type=int, default=0, metavar="N", help="Time N extra runs")

    walk_parser = subparsers.add_parser("walk", help="Walk a spec")
    walk_parser.add_argument("spec", help="Spec file (JSON)")
    walk_parser.add_argument("-s", "--state", help='Starting state in JSON, e.g. {"node":"start","bs":{}}')
    walk_parser.add_argument("-m", "--message", help="Pending message in JSON")
    walk_parser.add_argument("--max-steps", type=int, default=DEFAULT_MAX_STEPS, help="Step limit")

    check_parser = subparsers.add_parser("check", help="Check a spec for errors")
    check_parser.add_argument("spec", help="Spec file (JSON)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    commands = {"match": cmd_match, "walk": cmd_walk, "check": cmd_check}
    try:
        return commands[args.action](args)
    except (GotspecError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
