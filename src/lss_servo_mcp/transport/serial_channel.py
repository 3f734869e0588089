"""Serial connection to an LSS servo bus.

LSS servos share one half-duplex UART line at 115200 baud by default. This
module only moves bytes; framing and request/response pairing live in
:mod:`lss_servo_mcp.protocol` and :mod:`lss_servo_mcp.transport.session`.
"""

from __future__ import annotations

import logging

import serial

from ..errors import SerialPortOpenError

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 115200
DEFAULT_TIMEOUT = 0.1  # seconds


class SerialChannel:
    """Owns a pyserial port.

    Usage::

        channel = SerialChannel("/dev/ttyUSB0")
        channel.open()
        channel.write(b"#5QV\\r")
        reply = channel.read_until(b"\\r", timeout=0.1)
        channel.close()
    """

    def __init__(self, port: str, baud_rate: int = DEFAULT_BAUD_RATE) -> None:
        self._port = port
        self._baud_rate = baud_rate
        self._serial: serial.Serial | None = None

    @property
    def port(self) -> str:
        return self._port

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """Open the serial port.

        Raises:
            SerialPortOpenError: If the port cannot be opened.
        """
        if self.connected:
            return
        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baud_rate,
                timeout=DEFAULT_TIMEOUT,
            )
        except (serial.SerialException, ValueError) as e:
            raise SerialPortOpenError(
                f"Could not open serial port {self._port} at {self._baud_rate} baud: {e}"
            ) from e
        logger.info("Opened %s at %d baud", self._port, self._baud_rate)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        finally:
            self._serial = None
            logger.info("Closed %s", self._port)

    def write(self, data: bytes) -> None:
        """Write ``data`` as one logical write and wait for it to drain.

        Raises:
            ConnectionError: If the port is not open.
            serial.SerialException: If the write fails.
        """
        port = self._require_open()
        written = port.write(data)
        if written is not None and written != len(data):
            raise serial.SerialException(
                f"Short write: {written} of {len(data)} bytes"
            )
        port.flush()

    def read_until(self, delimiter: bytes, timeout: float) -> bytes:
        """Read until ``delimiter`` or until ``timeout`` seconds have passed.

        Returns:
            The bytes read. They end with ``delimiter`` unless the deadline
            elapsed first.
        """
        port = self._require_open()
        if port.timeout != timeout:
            # pyserial reconfigures the port on every assignment
            port.timeout = timeout
        return bytes(port.read_until(delimiter))

    def discard_input(self) -> None:
        """Drop anything waiting in the receive buffer."""
        self._require_open().reset_input_buffer()

    def _require_open(self) -> serial.Serial:
        if not self.connected:
            raise ConnectionError(f"Serial port {self._port} is not open")
        return self._serial
