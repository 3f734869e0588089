"""Shared test doubles."""

from __future__ import annotations

import pytest

from lss_servo_mcp.transport.session import TransportSession


class FakeChannel:
    """In-memory stand-in for a serial line.

    Bytes fed with :meth:`feed` sit in a receive buffer until read.
    :meth:`reply_to` schedules a reply that arrives as soon as the given
    request is written, the way a servo answers.
    """

    def __init__(self) -> None:
        self.written: list[bytes] = []
        self.buffer = bytearray()
        self.replies: dict[bytes, list[bytes]] = {}
        self.discards = 0
        self.closed = False
        self.fail_writes = False
        self.timeouts: list[float] = []

    def reply_to(self, request: bytes, reply: bytes) -> None:
        self.replies.setdefault(request, []).append(reply)

    def feed(self, data: bytes) -> None:
        self.buffer += data

    def write(self, data: bytes) -> None:
        if self.fail_writes:
            raise OSError("line down")
        self.written.append(data)
        pending = self.replies.get(data)
        if pending:
            self.feed(pending.pop(0))

    def read_until(self, delimiter: bytes, timeout: float) -> bytes:
        self.timeouts.append(timeout)
        idx = self.buffer.find(delimiter)
        if idx < 0:
            data = bytes(self.buffer)
            self.buffer.clear()
            return data
        data = bytes(self.buffer[: idx + len(delimiter)])
        del self.buffer[: idx + len(delimiter)]
        return data

    def discard_input(self) -> None:
        self.discards += 1
        self.buffer.clear()

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def session(channel: FakeChannel) -> TransportSession:
    return TransportSession(channel, timeout=0.05)
