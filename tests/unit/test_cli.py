# tests/unit/test_cli.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import json

import pytest

from gotspec.__main__ import build_parser, main


@pytest.fixture
def spec_file(tmp_path):
    def _write(doc):
        path = tmp_path / "spec.json"
        path.write_text(json.dumps(doc))
        return str(path)

    return _write


def test_match_prints_alternatives(capsys):
    assert main(["match", "-p", '["a","?x"]', "-m", '["a","b","c"]']) == 0
    got = json.loads(capsys.readouterr().out)
    assert sorted(bs["?x"] for bs in got) == ["b", "c"]


def test_match_with_bindings_and_wanted(capsys):
    code = main(["match", "-p", '{"n":"?<n"}', "-m", '{"n":3}', "-b", '{"?<n":10}', "-w", '[{"?n":3,"?<n":10}]'])
    assert code == 0


def test_match_wanted_mismatch(capsys):
    assert main(["match", "-p", '{"n":"?n"}', "-m", '{"n":3}', "-w", "[]"]) == 1
    assert "wanted" in capsys.readouterr().err


def test_match_bench(capsys):
    assert main(["match", "-p", "1", "-m", "1", "--bench", "3"]) == 0
    assert json.loads(capsys.readouterr().out) == [{}]


def test_match_structure_error(capsys):
    assert main(["match", "-p", '["?x","?y"]', "-m", "[1]"]) == 2
    assert "Error" in capsys.readouterr().err


def test_match_bad_json(capsys):
    assert main(["match", "-p", "{", "-m", "1"]) == 2


def test_walk(capsys, spec_file):
    path = spec_file(
        {
            "nodes": {
                "start": {"branching": {"branches": [{"target": "listen"}]}},
                "listen": {"branching": {"type": "message", "branches": [{"pattern": {"a": "?a"}, "target": "done"}]}},
                "done": {},
            }
        }
    )
    assert main(["walk", path, "-m", '{"a":1}']) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"to": {"node": "done", "bs": {"?a": 1}}, "consumed": True, "emitted": []}


def test_walk_from_state_with_limit(capsys, spec_file):
    path = spec_file({"nodes": {"a": {"branching": {"branches": [{"target": "a"}]}}}})
    assert main(["walk", path, "-s", '{"node":"a","bs":{}}', "--max-steps", "4"]) == 0
    assert json.loads(capsys.readouterr().out)["stoppedBecause"] == "limited"


def test_walk_missing_file(capsys, tmp_path):
    assert main(["walk", str(tmp_path / "nope.json")]) == 2


def test_check(capsys, spec_file):
    ok = spec_file({"nodes": {"start": {}}})
    assert main(["check", ok]) == 0
    assert json.loads(capsys.readouterr().out)["nodeCount"] == 1

    bad = spec_file({"nodes": {"start": {"branching": {"branches": [{"target": "gone"}]}}}})
    assert main(["check", bad]) == 1


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
