"""Tests for typed response decoding."""

import pytest

from lss_servo_mcp.errors import PacketParsingError
from lss_servo_mcp.models.status import (
    LedBlinking,
    LedColor,
    Model,
    MotorStatus,
    SafeModeStatus,
)
from lss_servo_mcp.protocol.framing import parse_frame
from lss_servo_mcp.protocol.parser import (
    parse_int,
    parse_led_blinking,
    parse_led_color,
    parse_model,
    parse_motor_status,
    parse_safe_mode_status,
    parse_text,
)


def test_parse_int():
    assert parse_int(parse_frame(b"*5QV2182\r")) == 2182


def test_parse_int_rejects_text_reply():
    with pytest.raises(PacketParsingError):
        parse_int(parse_frame(b"*5QMSLSS-ST1\r"))


def test_parse_text():
    assert parse_text(parse_frame(b"*5QN42\r")) == "42"


def test_parse_led_color():
    assert parse_led_color(parse_frame(b"*5QLED3\r")) is LedColor.BLUE


def test_parse_led_color_out_of_range():
    with pytest.raises(PacketParsingError) as exc:
        parse_led_color(parse_frame(b"*5QLED9\r"))
    assert "LedColor" in str(exc.value)


def test_parse_motor_status():
    assert parse_motor_status(parse_frame(b"*5Q10\r")) is MotorStatus.SAFE_MODE


def test_parse_motor_status_out_of_range():
    with pytest.raises(PacketParsingError):
        parse_motor_status(parse_frame(b"*5Q42\r"))


def test_parse_safe_mode_status():
    status = parse_safe_mode_status(parse_frame(b"*5Q2\r"))
    assert status is SafeModeStatus.INPUT_VOLTAGE_OUT_OF_RANGE


def test_parse_led_blinking():
    assert parse_led_blinking(parse_frame(b"*5QLB63\r")) == LedBlinking.ALWAYS_BLINK


def test_parse_model():
    assert parse_model(parse_frame(b"*5QMSLSS-HT1\r")) == Model.HT1
    assert parse_model(parse_frame(b"*5QMSLSS-XX9\r")) == Model("LSS-XX9")
