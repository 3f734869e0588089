"""Closed value types reported and accepted by the servo.

Each enumeration decodes through an explicit table rather than by position,
so new codes can be appended without disturbing existing ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import ClassVar, Iterable

from ..errors import PacketParsingError


def _lookup(table: dict, enum_name: str, code: int):
    if isinstance(code, bool) or not isinstance(code, int):
        raise PacketParsingError(repr(code), f"{enum_name} code must be an integer")
    try:
        return table[code]
    except KeyError:
        raise PacketParsingError(
            str(code), f"{code} is not a valid {enum_name}"
        ) from None


class LedColor(IntEnum):
    """Colors for the LED on the servo."""

    OFF = 0
    RED = 1
    GREEN = 2
    BLUE = 3
    YELLOW = 4
    CYAN = 5
    MAGENTA = 6
    WHITE = 7

    @classmethod
    def from_wire_int(cls, code: int) -> LedColor:
        return _lookup(_LED_COLORS, "LedColor", code)

    def to_wire_int(self) -> int:
        return int(self.value)


_LED_COLORS: dict[int, LedColor] = {
    0: LedColor.OFF,
    1: LedColor.RED,
    2: LedColor.GREEN,
    3: LedColor.BLUE,
    4: LedColor.YELLOW,
    5: LedColor.CYAN,
    6: LedColor.MAGENTA,
    7: LedColor.WHITE,
}


class MotorStatus(IntEnum):
    """Motor state as answered to a status query.

    When the status is ``SAFE_MODE`` the safety status query tells why.
    """

    UNKNOWN = 0
    LIMP = 1
    FREE_MOVING = 2
    ACCELERATING = 3
    TRAVELING = 4
    DECELERATING = 5
    HOLDING = 6
    OUTSIDE_LIMITS = 7
    STUCK = 8
    BLOCKED = 9
    SAFE_MODE = 10

    @classmethod
    def from_wire_int(cls, code: int) -> MotorStatus:
        return _lookup(_MOTOR_STATUSES, "MotorStatus", code)

    def to_wire_int(self) -> int:
        return int(self.value)


_MOTOR_STATUSES: dict[int, MotorStatus] = {
    0: MotorStatus.UNKNOWN,
    1: MotorStatus.LIMP,
    2: MotorStatus.FREE_MOVING,
    3: MotorStatus.ACCELERATING,
    4: MotorStatus.TRAVELING,
    5: MotorStatus.DECELERATING,
    6: MotorStatus.HOLDING,
    7: MotorStatus.OUTSIDE_LIMITS,
    8: MotorStatus.STUCK,
    9: MotorStatus.BLOCKED,
    10: MotorStatus.SAFE_MODE,
}


class SafeModeStatus(IntEnum):
    """Reason the servo entered safe mode (``NO_LIMITS`` when it has not)."""

    NO_LIMITS = 0
    CURRENT_LIMIT = 1
    INPUT_VOLTAGE_OUT_OF_RANGE = 2
    TEMPERATURE_LIMIT = 3

    @classmethod
    def from_wire_int(cls, code: int) -> SafeModeStatus:
        return _lookup(_SAFE_MODE_STATUSES, "SafeModeStatus", code)

    def to_wire_int(self) -> int:
        return int(self.value)


_SAFE_MODE_STATUSES: dict[int, SafeModeStatus] = {
    0: SafeModeStatus.NO_LIMITS,
    1: SafeModeStatus.CURRENT_LIMIT,
    2: SafeModeStatus.INPUT_VOLTAGE_OUT_OF_RANGE,
    3: SafeModeStatus.TEMPERATURE_LIMIT,
}


class LedBlinking(IntFlag):
    """Motor states that make the LED blink. Members can be OR-ed together."""

    NO_BLINKING = 0
    LIMP = 1
    HOLDING = 2
    ACCELERATING = 4
    DECELERATING = 8
    FREE = 16
    TRAVELLING = 32
    ALWAYS_BLINK = 63

    @classmethod
    def combine(cls, flags: Iterable[LedBlinking]) -> LedBlinking:
        mask = cls.NO_BLINKING
        for flag in flags:
            mask |= flag
        return mask

    @classmethod
    def from_wire_int(cls, code: int) -> LedBlinking:
        if isinstance(code, bool) or not isinstance(code, int):
            raise PacketParsingError(repr(code), "LedBlinking code must be an integer")
        if not 0 <= code <= int(cls.ALWAYS_BLINK):
            raise PacketParsingError(str(code), f"{code} is not a valid LedBlinking")
        return cls(code)

    def to_wire_int(self) -> int:
        return int(self.value)


@dataclass(frozen=True)
class Model:
    """Servo model identifier.

    Model strings are free text in the protocol, so unknown strings are kept
    as-is instead of being rejected.
    """

    name: str

    ST1: ClassVar[Model]
    HS1: ClassVar[Model]
    HT1: ClassVar[Model]

    @classmethod
    def parse(cls, text: str) -> Model:
        return _KNOWN_MODELS.get(text) or cls(name=text)

    @property
    def is_known(self) -> bool:
        return self.name in _KNOWN_MODELS

    def __str__(self) -> str:
        return self.name


# Standard, high speed and high torque models
Model.ST1 = Model("LSS-ST1")
Model.HS1 = Model("LSS-HS1")
Model.HT1 = Model("LSS-HT1")

_KNOWN_MODELS: dict[str, Model] = {
    m.name: m for m in (Model.ST1, Model.HS1, Model.HT1)
}
