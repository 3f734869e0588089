"""Tests for request/response exchange over a transport session."""

from __future__ import annotations

import threading
import time

import pytest

from lss_servo_mcp.errors import (
    InvalidAddressError,
    InvalidCommandUsageError,
    PacketParsingError,
    ResponseTimeoutError,
    SendingError,
)
from lss_servo_mcp.models.modifiers import Speed
from lss_servo_mcp.protocol.commands import Command
from lss_servo_mcp.protocol.framing import BROADCAST_ID
from lss_servo_mcp.transport.session import SessionState, TransportSession


def test_query_returns_parsed_response(session, channel):
    channel.reply_to(b"#5QV\r", b"*5QV2182\r")
    response = session.query(5, Command.QUERY_VOLTAGE)
    assert response.value == 2182
    assert channel.written == [b"#5QV\r"]
    assert session.state is SessionState.IDLE


def test_action_skips_read(session, channel):
    """Commands without a reply return right after the write."""
    assert session.exchange(5, Command.MOVE_DEGREES, 300, [Speed(100)]) is None
    assert channel.written == [b"#5D300S100\r"]
    assert channel.timeouts == []


def test_broadcast_action_skips_read(session, channel):
    session.send(BROADCAST_ID, Command.LED, 2)
    assert channel.written == [b"#254LED2\r"]
    assert channel.timeouts == []


def test_broadcast_query_rejected(session, channel):
    with pytest.raises(InvalidCommandUsageError):
        session.query(BROADCAST_ID, Command.QUERY_VOLTAGE)
    assert channel.written == []


def test_query_of_action_rejected(session, channel):
    with pytest.raises(InvalidCommandUsageError):
        session.query(5, Command.LIMP)
    assert channel.written == []


def test_misuse_never_touches_wire(session, channel):
    with pytest.raises(InvalidAddressError):
        session.send(300, Command.LIMP)
    with pytest.raises(InvalidCommandUsageError):
        session.send(5, Command.MOVE_DEGREES)
    assert channel.written == []


def test_read_uses_configured_timeout(session, channel):
    channel.reply_to(b"#5QT\r", b"*5QT325\r")
    session.query(5, Command.QUERY_TEMPERATURE)
    assert channel.timeouts == [0.05]


def test_timeout_then_recovers(session, channel):
    """A timed-out query leaves the session usable."""
    with pytest.raises(ResponseTimeoutError):
        session.query(5, Command.QUERY_VOLTAGE)
    assert session.state is SessionState.IDLE

    channel.reply_to(b"#5QV\r", b"*5QV2182\r")
    assert session.query(5, Command.QUERY_VOLTAGE).value == 2182


def test_timeout_is_builtin_timeout(session):
    with pytest.raises(TimeoutError):
        session.query(5, Command.QUERY_CURRENT)


def test_late_reply_discarded(session, channel):
    """Bytes of an abandoned exchange are not read as the next reply."""
    channel.reply_to(b"#5QV\r", b"*5QV21")
    with pytest.raises(ResponseTimeoutError):
        session.query(5, Command.QUERY_VOLTAGE)

    # Rest of the old reply shows up after the deadline
    channel.feed(b"82\r")
    channel.reply_to(b"#5QC\r", b"*5QC140\r")
    assert session.query(5, Command.QUERY_CURRENT).value == 140
    assert channel.discards == 1


def test_mismatched_reply_drains_line(session, channel):
    """A reply meant for an earlier request marks the rest of the line stale."""
    with pytest.raises(ResponseTimeoutError):
        session.query(5, Command.QUERY_VOLTAGE)

    # Old voltage reply arrives just ahead of the current reading
    channel.reply_to(b"#5QC\r", b"*5QV2182\r*5QC140\r")
    with pytest.raises(PacketParsingError):
        session.query(5, Command.QUERY_CURRENT)

    channel.reply_to(b"#5QT\r", b"*5QT300\r")
    assert session.query(5, Command.QUERY_TEMPERATURE).value == 300
    assert channel.discards == 2


def test_no_drain_without_timeout(session, channel):
    channel.reply_to(b"#5QV\r", b"*5QV2182\r")
    session.query(5, Command.QUERY_VOLTAGE)
    session.send(5, Command.LIMP)
    assert channel.discards == 0


def test_parse_error_leaves_session_usable(session, channel):
    channel.reply_to(b"#5QV\r", b"*5QVxx\r")
    with pytest.raises(PacketParsingError):
        session.query(5, Command.QUERY_VOLTAGE)
    assert session.state is SessionState.IDLE

    channel.reply_to(b"#5QV\r", b"*5QV2000\r")
    assert session.query(5, Command.QUERY_VOLTAGE).value == 2000


def test_reply_from_other_servo_rejected(session, channel):
    channel.reply_to(b"#5QV\r", b"*6QV2182\r")
    with pytest.raises(PacketParsingError):
        session.query(5, Command.QUERY_VOLTAGE)


def test_reply_to_other_command_rejected(session, channel):
    channel.reply_to(b"#5QV\r", b"*5QC2182\r")
    with pytest.raises(PacketParsingError):
        session.query(5, Command.QUERY_VOLTAGE)


def test_write_failure_raises_sending_error(session, channel):
    channel.fail_writes = True
    with pytest.raises(SendingError):
        session.send(5, Command.LIMP)
    assert session.state is SessionState.IDLE


def test_write_failure_not_retried(session, channel):
    attempts = []

    def failing_write(data):
        attempts.append(data)
        raise OSError("unplugged")

    channel.write = failing_write
    with pytest.raises(SendingError):
        session.send(5, Command.MOVE_DEGREES, 100)
    assert attempts == [b"#5D100\r"]


def test_read_failure_raises_sending_error(session, channel):
    def failing_read(delimiter, timeout):
        raise OSError("device reports readiness to read but returned no data")

    channel.read_until = failing_read
    with pytest.raises(SendingError):
        session.query(5, Command.QUERY_VOLTAGE)


def test_close_closes_channel(session, channel):
    with session:
        pass
    assert channel.closed


def test_invalid_timeout(channel):
    with pytest.raises(ValueError):
        TransportSession(channel, timeout=0)


class EchoChannel:
    """Answers every query after a short delay and records activity."""

    def __init__(self) -> None:
        self.events: list[tuple[str, bytes]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._pending: bytes | None = None
        self._guard = threading.Lock()

    def write(self, data: bytes) -> None:
        with self._guard:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.events.append(("write", data))
        self._pending = data

    def read_until(self, delimiter: bytes, timeout: float) -> bytes:
        time.sleep(0.002)
        request = self._pending
        reply = b"*" + request[1:-1] + b"7" + delimiter
        with self._guard:
            self.in_flight -= 1
            self.events.append(("read", request))
        return reply

    def discard_input(self) -> None:
        pass

    def close(self) -> None:
        pass


def test_concurrent_callers_serialised():
    """Each write is followed by its own read before the next write."""
    channel = EchoChannel()
    session = TransportSession(channel, timeout=0.5)
    results: dict[int, list[int]] = {}
    errors: list[Exception] = []

    def worker(device_id: int) -> None:
        try:
            results[device_id] = [
                session.query(device_id, Command.QUERY_VOLTAGE).device_id
                for _ in range(10)
            ]
        except Exception as e:  # pragma: no cover - surfaced below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(1, 7)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert channel.max_in_flight == 1
    for device_id, seen in results.items():
        assert seen == [device_id] * 10
    for (kind_w, sent), (kind_r, answered) in zip(
        channel.events[::2], channel.events[1::2]
    ):
        assert kind_w == "write"
        assert kind_r == "read"
        assert sent == answered
