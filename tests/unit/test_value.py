# tests/unit/test_value.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from gotspec.core.bindings import Bindings
from gotspec.core.errors import UnknownValueTypeError
from gotspec.core.value import ValueKind, canonical, deep_copy, freeze, is_number, kind_of, scalar_equal, to_plain


@pytest.mark.parametrize(
    "value,kind",
    [
        (None, ValueKind.NULL),
        (True, ValueKind.BOOLEAN),
        (0, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        ("s", ValueKind.STRING),
        ([1], ValueKind.SEQUENCE),
        ((1,), ValueKind.SEQUENCE),
        ({"a": 1}, ValueKind.MAPPING),
        (Bindings({"?a": 1}), ValueKind.MAPPING),
    ],
)
def test_kind_of(value, kind):
    assert kind_of(value) is kind


def test_kind_of_rejects_other_objects():
    with pytest.raises(UnknownValueTypeError):
        kind_of({1, 2})


def test_is_number_excludes_booleans():
    assert is_number(3)
    assert not is_number(True)
    assert not is_number("3")


def test_scalar_equal_is_strict():
    assert scalar_equal(1, 1.0)
    assert scalar_equal(None, None)
    assert not scalar_equal(1, True)
    assert not scalar_equal("1", 1)


def test_freeze_ignores_key_order_and_container_type():
    assert freeze({"a": 1, "b": [1, 2]}) == freeze({"b": (1, 2), "a": 1.0})
    assert freeze([True]) != freeze([1])


def test_freeze_keeps_large_integers_exact():
    assert freeze(2**53) != freeze(2**53 + 1)
    assert freeze(10**400) == freeze(10**400)
    assert freeze(1) == freeze(1.0)
    assert freeze(True) != freeze(1)


def test_deep_copy_shares_nothing():
    original = {"a": [1, {"b": 2}]}
    copied = deep_copy(original)
    copied["a"][1]["b"] = 3
    assert original["a"][1]["b"] == 2


def test_to_plain_and_canonical():
    value = {"z": (1, 2), "a": Bindings({"?x": None})}
    assert to_plain(value) == {"z": [1, 2], "a": {"?x": None}}
    assert canonical(value) == '{"a":{"?x":null},"z":[1,2]}'
