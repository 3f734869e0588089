"""Request/response exchange over a shared, half-duplex servo line.

The line carries no request ids, so a response can only be attributed to a
request by ordering. A session therefore allows exactly one exchange in
flight: write one frame, then read up to the delimiter or the deadline.

Per exchange::

    IDLE -> SENDING -> AWAITING_RESPONSE -> COMPLETED -> IDLE
                   \\                    \\-> TIMED_OUT -> IDLE
                    \\-> TRANSPORT_FAILED -> IDLE

Nothing is retried here. Repeating a query is harmless, repeating a move
against a servo that is already travelling may not be, so that decision
belongs to the caller.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Iterable, Protocol

from ..errors import (
    InvalidCommandUsageError,
    PacketParsingError,
    ResponseTimeoutError,
    SendingError,
)
from ..models.modifiers import CommandModifier, Custom
from ..protocol.commands import Command
from ..protocol.framing import (
    BROADCAST_ID,
    DELIMITER,
    CommandFrame,
    ParsedResponse,
    parse_frame,
)
from .serial_channel import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Byte transport used by a session."""

    def write(self, data: bytes) -> None: ...

    def read_until(self, delimiter: bytes, timeout: float) -> bytes: ...

    def discard_input(self) -> None: ...

    def close(self) -> None: ...


class SessionState(Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    TRANSPORT_FAILED = "transport_failed"


class TransportSession:
    """Serialises exchanges with the servos on one channel.

    The session owns ``channel`` exclusively. Concurrent callers from
    several threads are queued on an internal lock, so the second caller's
    frame is not written until the first exchange has finished.
    """

    def __init__(self, channel: Channel, timeout: float = DEFAULT_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")
        self._channel = channel
        self._timeout = timeout
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._stale_input = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def timeout(self) -> float:
        return self._timeout

    def exchange(
        self,
        device_id: int,
        command: Command,
        value: int | None = None,
        modifiers: Iterable[CommandModifier | Custom] = (),
    ) -> ParsedResponse | None:
        """Send one command and, if the servo answers it, read the answer.

        Returns:
            The parsed response, or None for commands that get no answer
            (actions, and anything sent to the broadcast id).

        Raises:
            InvalidAddressError, InvalidCommandUsageError: Before any I/O.
            SendingError: If the channel fails.
            ResponseTimeoutError: If no complete frame arrives in time.
            PacketParsingError: If the answer is malformed or does not echo
                the request's device id and command.
        """
        frame = CommandFrame(device_id, command, value, tuple(modifiers))
        data = frame.to_bytes()

        with self._lock:
            try:
                self._write(data)
                if not frame.expects_response:
                    self._state = SessionState.COMPLETED
                    return None
                raw = self._read_response(data)
                self._state = SessionState.COMPLETED
                return self._decode(frame, raw)
            finally:
                self._state = SessionState.IDLE

    def send(
        self,
        device_id: int,
        command: Command,
        value: int | None = None,
        modifiers: Iterable[CommandModifier | Custom] = (),
    ) -> None:
        """Send a command that the servo does not answer."""
        response = self.exchange(device_id, command, value, modifiers)
        if response is not None:
            logger.debug("Ignoring reply to %s: %r", Command(command).value, response)

    def query(
        self, device_id: int, command: Command, value: int | None = None
    ) -> ParsedResponse:
        """Send a query and return the servo's answer.

        Raises:
            InvalidCommandUsageError: If the command gets no answer, or the
                target is the broadcast id.
        """
        frame = CommandFrame(device_id, command, value)
        if frame.device_id == BROADCAST_ID:
            raise InvalidCommandUsageError(
                f"Cannot query broadcast id {BROADCAST_ID}: it never answers"
            )
        if not frame.expects_response:
            raise InvalidCommandUsageError(f"{frame.command.value} is not a query")
        return self.exchange(device_id, command, value)

    def close(self) -> None:
        """Close the underlying channel."""
        with self._lock:
            self._channel.close()

    def __enter__(self) -> TransportSession:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _write(self, data: bytes) -> None:
        self._state = SessionState.SENDING
        try:
            if self._stale_input:
                # Late reply to a timed-out request must not be read as ours
                self._channel.discard_input()
                self._stale_input = False
            logger.debug("TX %r", data)
            self._channel.write(data)
        except OSError as e:
            self._state = SessionState.TRANSPORT_FAILED
            logger.error("Writing %r failed: %s", data, e)
            raise SendingError(f"Failed to send {data!r}: {e}") from e

    def _read_response(self, request: bytes) -> bytes:
        self._state = SessionState.AWAITING_RESPONSE
        try:
            raw = self._channel.read_until(DELIMITER, self._timeout)
        except OSError as e:
            self._state = SessionState.TRANSPORT_FAILED
            self._stale_input = True
            logger.error("Reading reply to %r failed: %s", request, e)
            raise SendingError(f"Failed to read reply to {request!r}: {e}") from e

        if not raw.endswith(DELIMITER):
            self._state = SessionState.TIMED_OUT
            self._stale_input = True
            logger.warning(
                "No reply to %r within %.3fs (discarded %r)",
                request, self._timeout, raw,
            )
            raise ResponseTimeoutError(
                f"No reply to {request!r} within {self._timeout}s"
            )
        logger.debug("RX %r", raw)
        return raw

    def _decode(self, frame: CommandFrame, raw: bytes) -> ParsedResponse:
        try:
            response = parse_frame(raw)
        except PacketParsingError as e:
            logger.warning("Unparseable reply: %s", e)
            raise
        if response.device_id != frame.device_id or response.command != frame.command:
            # Our own reply may still be queued behind this one
            self._stale_input = True
            logger.warning(
                "Reply %r does not match request %s%s",
                raw, frame.device_id, frame.command.value,
            )
            raise PacketParsingError(
                raw,
                f"expected reply from {frame.device_id}{frame.command.value}, "
                f"got {response.device_id}{response.command.value}",
            )
        return response
