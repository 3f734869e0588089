"""Tests for command modifier encoding."""

from datetime import timedelta

import pytest

from lss_servo_mcp.models.modifiers import (
    CurrentHold,
    CurrentLimp,
    Custom,
    NoModifier,
    Speed,
    SpeedDegrees,
    Timed,
    encode_modifier,
    encode_modifiers,
)


def test_modifier_tokens():
    assert encode_modifier(Speed(100)) == "S100"
    assert encode_modifier(SpeedDegrees(90)) == "SD90"
    assert encode_modifier(Timed(2000)) == "T2000"
    assert encode_modifier(CurrentHold(400)) == "CH400"
    assert encode_modifier(CurrentLimp(600)) == "CL600"


def test_no_modifier_is_empty():
    assert encode_modifier(NoModifier()) == ""
    assert encode_modifiers([NoModifier(), Speed(5)]) == "S5"


def test_order_preserved():
    """Tokens come out in exactly the order given."""
    mods = [Speed(100), Timed(200)]
    assert encode_modifiers(mods) == "S100T200"
    assert encode_modifiers(reversed(mods)) == "T200S100"


def test_empty_list():
    assert encode_modifiers([]) == ""


def test_custom_is_verbatim():
    """Custom tags are not validated and may carry negative values."""
    assert encode_modifier(Custom("E", -5)) == "E-5"
    assert encode_modifiers([Custom("xyz", 1), Speed(2)]) == "xyz1S2"


def test_negative_magnitude_rejected():
    with pytest.raises(ValueError):
        Speed(-1)
    with pytest.raises(ValueError):
        CurrentLimp(-10)


def test_non_integer_magnitude_rejected():
    with pytest.raises(ValueError):
        Timed(1.5)


def test_timed_from_duration():
    assert Timed.from_duration(timedelta(seconds=1.5)) == Timed(1500)


def test_not_a_modifier():
    with pytest.raises(TypeError):
        encode_modifier("S100")
