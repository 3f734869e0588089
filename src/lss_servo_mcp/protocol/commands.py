"""Command catalogue for the LSS command language.

Each opcode is tagged with whether it takes a value, whether it accepts
modifier suffixes and what kind of response the servo sends back. The
catalogue is append-only: existing entries are never redefined.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import PacketParsingError


class ValueUsage(Enum):
    NONE = "none"
    REQUIRED = "required"
    OPTIONAL = "optional"


class ResponseKind(Enum):
    NONE = "none"
    INTEGER = "integer"
    TEXT = "text"


class Command(str, Enum):
    """Opcodes understood by the servo."""

    # Actions
    LIMP = "L"
    HALT_HOLD = "H"
    MOVE_DEGREES = "D"
    MOVE_RELATIVE = "MD"
    MOVE_PULSE = "P"
    WHEEL_DEGREES = "WD"
    WHEEL_RPM = "WR"
    LED = "LED"
    CONFIG_LED_BLINK = "CLB"
    MOTION_PROFILE = "EM"
    FILTER_POSITION_COUNT = "FPC"
    ANGULAR_STIFFNESS = "AS"
    ANGULAR_HOLDING = "AH"
    ANGULAR_ACCELERATION = "AA"
    ANGULAR_DECELERATION = "AD"
    MAX_MOTOR_DUTY = "MMD"
    MAX_SPEED_DEGREES = "SD"
    RESET = "RESET"

    # Queries
    QUERY_STATUS = "Q"
    QUERY_POSITION = "QD"
    QUERY_TARGET_POSITION = "QDT"
    QUERY_WHEEL_DEGREES = "QWD"
    QUERY_VOLTAGE = "QV"
    QUERY_TEMPERATURE = "QT"
    QUERY_CURRENT = "QC"
    QUERY_LED = "QLED"
    QUERY_LED_BLINK = "QLB"
    QUERY_ID = "QID"
    QUERY_MOTION_PROFILE = "QEM"
    QUERY_FILTER_POSITION_COUNT = "QFPC"
    QUERY_ANGULAR_STIFFNESS = "QAS"
    QUERY_ANGULAR_HOLDING = "QAH"
    QUERY_ANGULAR_ACCELERATION = "QAA"
    QUERY_ANGULAR_DECELERATION = "QAD"
    QUERY_MAX_MOTOR_DUTY = "QMMD"
    QUERY_MAX_SPEED_DEGREES = "QSD"
    QUERY_FIRMWARE = "QF"
    QUERY_SERIAL_NUMBER = "QN"
    QUERY_MODEL = "QMS"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CommandEntry:
    value: ValueUsage
    modifiers: bool
    response: ResponseKind

    @property
    def expects_response(self) -> bool:
        return self.response is not ResponseKind.NONE


_ACTION = CommandEntry(ValueUsage.REQUIRED, False, ResponseKind.NONE)
_MOVE = CommandEntry(ValueUsage.REQUIRED, True, ResponseKind.NONE)
_BARE_ACTION = CommandEntry(ValueUsage.NONE, False, ResponseKind.NONE)
_INT_QUERY = CommandEntry(ValueUsage.NONE, False, ResponseKind.INTEGER)
_TEXT_QUERY = CommandEntry(ValueUsage.NONE, False, ResponseKind.TEXT)

CATALOGUE: dict[Command, CommandEntry] = {
    Command.LIMP: _BARE_ACTION,
    Command.HALT_HOLD: _BARE_ACTION,
    Command.MOVE_DEGREES: _MOVE,
    Command.MOVE_RELATIVE: _MOVE,
    Command.MOVE_PULSE: _MOVE,
    Command.WHEEL_DEGREES: _MOVE,
    Command.WHEEL_RPM: _MOVE,
    Command.LED: _ACTION,
    Command.CONFIG_LED_BLINK: _ACTION,
    Command.MOTION_PROFILE: _ACTION,
    Command.FILTER_POSITION_COUNT: _ACTION,
    Command.ANGULAR_STIFFNESS: _ACTION,
    Command.ANGULAR_HOLDING: _ACTION,
    Command.ANGULAR_ACCELERATION: _ACTION,
    Command.ANGULAR_DECELERATION: _ACTION,
    Command.MAX_MOTOR_DUTY: _ACTION,
    Command.MAX_SPEED_DEGREES: _ACTION,
    Command.RESET: _BARE_ACTION,
    # Q takes an optional query type; Q1 asks for the safety status
    Command.QUERY_STATUS: CommandEntry(
        ValueUsage.OPTIONAL, False, ResponseKind.INTEGER
    ),
    Command.QUERY_POSITION: _INT_QUERY,
    Command.QUERY_TARGET_POSITION: _INT_QUERY,
    Command.QUERY_WHEEL_DEGREES: _INT_QUERY,
    Command.QUERY_VOLTAGE: _INT_QUERY,
    Command.QUERY_TEMPERATURE: _INT_QUERY,
    Command.QUERY_CURRENT: _INT_QUERY,
    Command.QUERY_LED: _INT_QUERY,
    Command.QUERY_LED_BLINK: _INT_QUERY,
    Command.QUERY_ID: _INT_QUERY,
    Command.QUERY_MOTION_PROFILE: _INT_QUERY,
    Command.QUERY_FILTER_POSITION_COUNT: _INT_QUERY,
    Command.QUERY_ANGULAR_STIFFNESS: _INT_QUERY,
    Command.QUERY_ANGULAR_HOLDING: _INT_QUERY,
    Command.QUERY_ANGULAR_ACCELERATION: _INT_QUERY,
    Command.QUERY_ANGULAR_DECELERATION: _INT_QUERY,
    Command.QUERY_MAX_MOTOR_DUTY: _INT_QUERY,
    Command.QUERY_MAX_SPEED_DEGREES: _INT_QUERY,
    Command.QUERY_FIRMWARE: _INT_QUERY,
    Command.QUERY_SERIAL_NUMBER: _TEXT_QUERY,
    Command.QUERY_MODEL: _TEXT_QUERY,
}

_BY_OPCODE: dict[str, Command] = {c.value: c for c in Command}


def catalogue_entry(command: Command) -> CommandEntry:
    """Return the catalogue entry for ``command``."""
    return CATALOGUE[Command(command)]


def lookup_command(opcode: str) -> Command:
    """Resolve an opcode string to a :class:`Command`.

    Raises:
        PacketParsingError: If the opcode is not in the catalogue.
    """
    try:
        return _BY_OPCODE[opcode]
    except KeyError:
        raise PacketParsingError(opcode, f"unknown command code {opcode!r}") from None


def longest_opcode_prefix(letters: str) -> Command | None:
    """Return the longest known opcode that ``letters`` starts with."""
    for end in range(len(letters), 0, -1):
        command = _BY_OPCODE.get(letters[:end])
        if command is not None:
            return command
    return None
