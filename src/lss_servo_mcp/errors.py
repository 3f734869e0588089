"""Exception hierarchy for the LSS driver.

Every error derives from :class:`LssDriverError`. Where a builtin exception
describes the same failure (bad argument, closed port, timeout) the driver
error also derives from it, so generic handlers keep working.
"""

from __future__ import annotations


class LssDriverError(Exception):
    """Base class for all driver errors."""


class PacketParsingError(LssDriverError):
    """A response frame (or a value inside it) could not be decoded.

    Attributes:
        raw: The offending text, kept for diagnostics.
        reason: Short description of what was wrong.
    """

    def __init__(self, raw: str | bytes, reason: str) -> None:
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("ascii", errors="backslashreplace")
        self.raw = raw
        self.reason = reason
        super().__init__(f"Failed to parse {raw!r}: {reason}")


class ResponseTimeoutError(LssDriverError, TimeoutError):
    """No complete response frame arrived before the deadline."""


class SerialPortOpenError(LssDriverError, ConnectionError):
    """The serial port could not be opened."""


class SendingError(LssDriverError, IOError):
    """Writing a frame to the channel failed."""


class InvalidAddressError(LssDriverError, ValueError):
    """Device id is outside the addressable range."""


class InvalidCommandUsageError(LssDriverError, ValueError):
    """A command was given arguments its catalogue entry does not allow."""
