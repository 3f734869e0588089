"""Typed decoding of parsed response frames."""

from __future__ import annotations

from ..errors import PacketParsingError
from ..models.status import (
    LedBlinking,
    LedColor,
    Model,
    MotorStatus,
    SafeModeStatus,
)
from .framing import ParsedResponse


def parse_int(response: ParsedResponse) -> int:
    """Return the integer payload of a response."""
    if response.value is None:
        raise PacketParsingError(
            response.raw, f"{response.command.value} reply is not an integer"
        )
    return response.value


def parse_text(response: ParsedResponse) -> str:
    """Return the raw text payload of a response."""
    return response.text


def parse_led_color(response: ParsedResponse) -> LedColor:
    return LedColor.from_wire_int(parse_int(response))


def parse_motor_status(response: ParsedResponse) -> MotorStatus:
    return MotorStatus.from_wire_int(parse_int(response))


def parse_safe_mode_status(response: ParsedResponse) -> SafeModeStatus:
    return SafeModeStatus.from_wire_int(parse_int(response))


def parse_led_blinking(response: ParsedResponse) -> LedBlinking:
    return LedBlinking.from_wire_int(parse_int(response))


def parse_model(response: ParsedResponse) -> Model:
    """Parse a model string reply. Unknown models are kept, not rejected."""
    return Model.parse(parse_text(response))
