"""ASCII frame builder and parser for the LSS serial protocol.

Frame layout::

    command:   #  <id>  <OPCODE>  [<value>]  [<modifiers>]  \\r
    response:  *  <id>  <OPCODE>  <value>                   \\r

- id: decimal device id, 0-253, or 254 for broadcast
- OPCODE: 1-5 upper-case letters from the command catalogue
- value: signed decimal integer (text for model / serial number replies)
- modifiers: letter tag followed by a decimal value, e.g. ``S100T200``

There is no checksum; a frame ends at the carriage return.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from ..errors import (
    InvalidAddressError,
    InvalidCommandUsageError,
    PacketParsingError,
)
from ..models.modifiers import CommandModifier, Custom, encode_modifiers
from .commands import (
    Command,
    ResponseKind,
    ValueUsage,
    catalogue_entry,
    lookup_command,
    longest_opcode_prefix,
)

COMMAND_MARKER = "#"
RESPONSE_MARKER = "*"
DELIMITER = b"\r"
MAX_DEVICE_ID = 253
BROADCAST_ID = 254

_RESPONSE_RE = re.compile(r"\*(?P<id>\d{1,3})(?P<letters>[A-Z]+)(?P<rest>.*)", re.DOTALL)
_INTEGER_RE = re.compile(r"-?\d{1,10}")


@dataclass(frozen=True)
class CommandFrame:
    """An outgoing command, validated against the catalogue on creation."""

    device_id: int
    command: Command
    value: int | None = None
    modifiers: tuple[CommandModifier | Custom, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        validate_device_id(self.device_id)
        try:
            command = Command(self.command)
        except ValueError:
            raise InvalidCommandUsageError(
                f"Unknown command code {self.command!r}"
            ) from None
        object.__setattr__(self, "command", command)
        object.__setattr__(self, "modifiers", tuple(self.modifiers))

        entry = catalogue_entry(command)
        if self.value is not None and (
            isinstance(self.value, bool) or not isinstance(self.value, int)
        ):
            raise InvalidCommandUsageError(
                f"{command.value} value must be an int, got {self.value!r}"
            )
        if entry.value is ValueUsage.REQUIRED and self.value is None:
            raise InvalidCommandUsageError(f"{command.value} requires a value")
        if entry.value is ValueUsage.NONE and self.value is not None:
            raise InvalidCommandUsageError(
                f"{command.value} does not take a value, got {self.value}"
            )
        try:
            suffix = encode_modifiers(self.modifiers)
        except TypeError as e:
            raise InvalidCommandUsageError(str(e)) from e
        if suffix and not entry.modifiers:
            raise InvalidCommandUsageError(
                f"{command.value} does not accept modifiers, got {suffix!r}"
            )

    @property
    def expects_response(self) -> bool:
        """Whether the servo answers this frame.

        Broadcast frames are never answered.
        """
        return (
            catalogue_entry(self.command).expects_response
            and self.device_id != BROADCAST_ID
        )

    def to_bytes(self) -> bytes:
        value = "" if self.value is None else str(self.value)
        text = (
            f"{COMMAND_MARKER}{self.device_id}{self.command.value}"
            f"{value}{encode_modifiers(self.modifiers)}"
        )
        return text.encode("ascii") + DELIMITER


@dataclass(frozen=True)
class ParsedResponse:
    """A decoded response frame."""

    device_id: int
    command: Command
    value: int | None
    text: str
    raw: bytes

    def __repr__(self) -> str:
        payload = self.value if self.value is not None else repr(self.text)
        return (
            f"ParsedResponse(device_id={self.device_id}, "
            f"command={self.command.value}, payload={payload})"
        )


def validate_device_id(device_id: int) -> None:
    """Raise :class:`InvalidAddressError` unless ``device_id`` is addressable."""
    if isinstance(device_id, bool) or not isinstance(device_id, int):
        raise InvalidAddressError(f"Device id must be an int, got {device_id!r}")
    if not 0 <= device_id <= BROADCAST_ID:
        raise InvalidAddressError(
            f"Device id must be 0-{MAX_DEVICE_ID} or {BROADCAST_ID} (broadcast), "
            f"got {device_id}"
        )


def build_frame(
    device_id: int,
    command: Command,
    value: int | None = None,
    modifiers: Iterable[CommandModifier | Custom] = (),
) -> bytes:
    """Build the wire bytes for one command.

    Args:
        device_id: Target servo, or ``BROADCAST_ID``.
        command: Opcode from the catalogue.
        value: Integer argument, required or forbidden by the catalogue.
        modifiers: Suffixes, written in the given order.

    Returns:
        ASCII bytes ending in a carriage return, e.g. ``b"#5D300\\r"``.

    Raises:
        InvalidAddressError: If the device id is out of range.
        InvalidCommandUsageError: If value or modifiers do not fit the command.
    """
    return CommandFrame(device_id, command, value, tuple(modifiers)).to_bytes()


def parse_frame(data: bytes) -> ParsedResponse:
    """Parse one response frame, delimiter included.

    Raises:
        PacketParsingError: If anything about the frame is malformed. No
            partial result is ever returned.
    """
    data = bytes(data)
    if not data.endswith(DELIMITER):
        raise PacketParsingError(data, "missing frame delimiter")
    body = data[: -len(DELIMITER)]
    if DELIMITER in body:
        raise PacketParsingError(data, "more than one frame")
    try:
        text = body.decode("ascii")
    except UnicodeDecodeError:
        raise PacketParsingError(data, "non-ASCII bytes in frame") from None

    if not text.startswith(RESPONSE_MARKER):
        raise PacketParsingError(data, f"missing {RESPONSE_MARKER!r} marker")
    match = _RESPONSE_RE.fullmatch(text)
    if match is None:
        raise PacketParsingError(data, "expected numeric device id then command code")

    device_id = int(match["id"])
    if device_id > BROADCAST_ID:
        raise PacketParsingError(data, f"device id {device_id} out of range")

    letters = match["letters"]
    command = longest_opcode_prefix(letters)
    if command is None:
        raise PacketParsingError(data, f"unknown command code {letters!r}")

    if catalogue_entry(command).response is ResponseKind.TEXT:
        payload = letters[len(command.value):] + match["rest"]
        if not payload:
            raise PacketParsingError(data, f"{command.value} reply carries no value")
        return ParsedResponse(device_id, command, None, payload, data)

    try:
        command = lookup_command(letters)
    except PacketParsingError as e:
        raise PacketParsingError(data, e.reason) from None
    rest = match["rest"]
    if not _INTEGER_RE.fullmatch(rest):
        raise PacketParsingError(data, f"non-numeric or truncated value {rest!r}")
    return ParsedResponse(device_id, command, int(rest), rest, data)
