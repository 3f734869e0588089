"""Command modifiers and their wire encoding.

A modifier is a short suffix appended to an action frame, e.g. ``#5D300S100``
moves servo 5 to 30.0 degrees at 100 us/s. Several modifiers can follow one
command; the servo reads them in the order they were written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar, Iterable


@dataclass(frozen=True)
class CommandModifier:
    """Base class for modifiers carrying a non-negative magnitude."""

    TAG: ClassVar[str] = ""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(
                f"{type(self).__name__} value must be an int, got {self.value!r}"
            )
        if self.value < 0:
            raise ValueError(
                f"{type(self).__name__} value must be non-negative, got {self.value}"
            )

    def to_wire(self) -> str:
        return f"{self.TAG}{self.value}"


@dataclass(frozen=True)
class Speed(CommandModifier):
    """Speed in microseconds per second. Only for P commands."""

    TAG: ClassVar[str] = "S"


@dataclass(frozen=True)
class SpeedDegrees(CommandModifier):
    """Speed in degrees per second. For D and MD commands."""

    TAG: ClassVar[str] = "SD"


@dataclass(frozen=True)
class Timed(CommandModifier):
    """Duration of the move in milliseconds. For P, D and MD commands."""

    TAG: ClassVar[str] = "T"

    @classmethod
    def from_duration(cls, duration: timedelta) -> Timed:
        return cls(int(duration.total_seconds() * 1000))


@dataclass(frozen=True)
class CurrentHold(CommandModifier):
    """Halt and hold once the current exceeds this many mA."""

    TAG: ClassVar[str] = "CH"


@dataclass(frozen=True)
class CurrentLimp(CommandModifier):
    """Go limp once the current exceeds this many mA."""

    TAG: ClassVar[str] = "CL"


@dataclass(frozen=True)
class NoModifier(CommandModifier):
    """Placeholder that encodes to nothing."""

    def to_wire(self) -> str:
        return ""


@dataclass(frozen=True)
class Custom:
    """Modifier this library does not model yet.

    The tag is written verbatim, so the caller is responsible for producing
    something the firmware understands.
    """

    tag: str
    value: int

    def to_wire(self) -> str:
        return f"{self.tag}{self.value}"


def encode_modifier(modifier: CommandModifier | Custom) -> str:
    """Encode a single modifier into its suffix token."""
    if not isinstance(modifier, (CommandModifier, Custom)):
        raise TypeError(f"Not a command modifier: {modifier!r}")
    return modifier.to_wire()


def encode_modifiers(modifiers: Iterable[CommandModifier | Custom]) -> str:
    """Concatenate modifier tokens, preserving order."""
    return "".join(encode_modifier(m) for m in modifiers)
