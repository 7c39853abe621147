"""Tests for optional values."""

import pytest

from thindata.models.option import NOTHING, Nothing, Some


def test_some_holds_value():
    option = Some(5)

    assert option.has_value
    assert option.value == 5
    assert option.get_or(0) == 5


def test_some_can_hold_none():
    option = Some(None)

    assert option.has_value
    assert option.value is None


def test_nothing_has_no_value():
    assert not NOTHING.has_value
    assert NOTHING.get_or("default") == "default"
    with pytest.raises(ValueError):
        NOTHING.value


def test_nothing_is_a_singleton():
    assert Nothing() is NOTHING
    assert not NOTHING


def test_some_equality_is_by_value():
    assert Some([1, 2]) == Some([1, 2])
    assert Some(1) != Some(2)
    assert Some(1) != NOTHING
    assert repr(Some("x")) == "Some('x')"
    assert repr(NOTHING) == "NOTHING"
