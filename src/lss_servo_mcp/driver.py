"""High-level driver for Lynxmotion LSS smart servos.

Every method takes the servo's device id first and converts between user
units (degrees, volts, amps, degrees Celsius) and the integer units on the
wire (tenths of a degree, millivolts, milliamps, tenths of a degree C).
"""

from __future__ import annotations

from typing import Iterable

from .models.modifiers import CommandModifier, Custom
from .models.status import (
    LedBlinking,
    LedColor,
    Model,
    MotorStatus,
    SafeModeStatus,
)
from .protocol.commands import Command
from .protocol.parser import (
    parse_int,
    parse_led_blinking,
    parse_led_color,
    parse_model,
    parse_motor_status,
    parse_safe_mode_status,
    parse_text,
)
from .transport.serial_channel import DEFAULT_BAUD_RATE, DEFAULT_TIMEOUT, SerialChannel
from .transport.session import TransportSession


# Argument to Q selecting the safety status instead of the motor status
SAFETY_STATUS_QUERY = 1

Modifier = CommandModifier | Custom


def _tenths(value: float) -> int:
    return int(round(value * 10))


class LssDriver:
    """Driver for a bus of LSS servos.

    Usage::

        with LssDriver.open("/dev/ttyUSB0") as driver:
            driver.set_color(5, LedColor.GREEN)
            driver.move_to_position(5, 30.0)
            print(driver.read_voltage(5))
    """

    def __init__(self, session: TransportSession) -> None:
        self._session = session

    @classmethod
    def open(
        cls,
        port: str,
        baud_rate: int = DEFAULT_BAUD_RATE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> LssDriver:
        """Open ``port`` and return a driver owning it.

        Raises:
            SerialPortOpenError: If the port cannot be opened.
        """
        channel = SerialChannel(port, baud_rate)
        channel.open()
        return cls(TransportSession(channel, timeout=timeout))

    @property
    def session(self) -> TransportSession:
        return self._session

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> LssDriver:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ─── ACTIONS ──────────────────────────────────────────────────────

    def limp(self, device_id: int) -> None:
        """Disengage the motor so the horn turns freely."""
        self._session.send(device_id, Command.LIMP)

    def halt_hold(self, device_id: int) -> None:
        """Stop and hold the current position."""
        self._session.send(device_id, Command.HALT_HOLD)

    def reset(self, device_id: int) -> None:
        """Soft-reset the servo."""
        self._session.send(device_id, Command.RESET)

    def move_to_position(self, device_id: int, position: float) -> None:
        """Move to an absolute position in degrees (0.1 degree resolution)."""
        self._session.send(device_id, Command.MOVE_DEGREES, _tenths(position))

    def move_to_position_with_modifier(
        self, device_id: int, position: float, modifier: Modifier
    ) -> None:
        self.move_to_position_with_modifiers(device_id, position, [modifier])

    def move_to_position_with_modifiers(
        self, device_id: int, position: float, modifiers: Iterable[Modifier]
    ) -> None:
        """Move to a position with speed, timing or current modifiers.

        Modifiers are written in the given order.
        """
        self._session.send(
            device_id, Command.MOVE_DEGREES, _tenths(position), modifiers
        )

    def move_relative(
        self, device_id: int, delta: float, modifiers: Iterable[Modifier] = ()
    ) -> None:
        """Move by ``delta`` degrees from the current position."""
        self._session.send(device_id, Command.MOVE_RELATIVE, _tenths(delta), modifiers)

    def move_to_pulse(
        self, device_id: int, pulse_us: int, modifiers: Iterable[Modifier] = ()
    ) -> None:
        """Move to an RC-style pulse position in microseconds."""
        self._session.send(device_id, Command.MOVE_PULSE, int(pulse_us), modifiers)

    def set_rotation_speed(self, device_id: int, speed: float) -> None:
        """Spin continuously in wheel mode, in degrees per second."""
        self._session.send(device_id, Command.WHEEL_DEGREES, int(round(speed)))

    def set_rotation_rpm(self, device_id: int, rpm: float) -> None:
        """Spin continuously in wheel mode, in revolutions per minute."""
        self._session.send(device_id, Command.WHEEL_RPM, int(round(rpm)))

    def set_color(self, device_id: int, color: LedColor) -> None:
        self._session.send(device_id, Command.LED, LedColor(color).to_wire_int())

    def set_led_blinking(
        self, device_id: int, blinking: Iterable[LedBlinking]
    ) -> None:
        """Choose which motor states make the LED blink."""
        mask = LedBlinking.combine(blinking)
        self._session.send(device_id, Command.CONFIG_LED_BLINK, mask.to_wire_int())

    def set_motion_profile(self, device_id: int, enabled: bool) -> None:
        """Enable or disable the trapezoidal motion profile."""
        self._session.send(device_id, Command.MOTION_PROFILE, 1 if enabled else 0)

    def set_filter_position_count(self, device_id: int, count: int) -> None:
        """Position filter length, used when the motion profile is off."""
        self._session.send(device_id, Command.FILTER_POSITION_COUNT, int(count))

    def set_angular_stiffness(self, device_id: int, stiffness: int) -> None:
        self._session.send(device_id, Command.ANGULAR_STIFFNESS, int(stiffness))

    def set_angular_holding(self, device_id: int, holding: int) -> None:
        self._session.send(device_id, Command.ANGULAR_HOLDING, int(holding))

    def set_angular_acceleration(self, device_id: int, acceleration: int) -> None:
        """Acceleration in degrees per second squared."""
        self._session.send(device_id, Command.ANGULAR_ACCELERATION, int(acceleration))

    def set_angular_deceleration(self, device_id: int, deceleration: int) -> None:
        """Deceleration in degrees per second squared."""
        self._session.send(device_id, Command.ANGULAR_DECELERATION, int(deceleration))

    def set_maximum_motor_duty(self, device_id: int, duty: int) -> None:
        self._session.send(device_id, Command.MAX_MOTOR_DUTY, int(duty))

    def set_maximum_speed(self, device_id: int, speed: float) -> None:
        """Maximum speed in degrees per second."""
        self._session.send(device_id, Command.MAX_SPEED_DEGREES, _tenths(speed))

    # ─── QUERIES ──────────────────────────────────────────────────────

    def query_position(self, device_id: int) -> float:
        """Current position in degrees."""
        return self._query_int(device_id, Command.QUERY_POSITION) / 10

    read_position = query_position

    def query_target_position(self, device_id: int) -> float:
        return self._query_int(device_id, Command.QUERY_TARGET_POSITION) / 10

    def query_rotation_speed(self, device_id: int) -> float:
        """Wheel speed in degrees per second."""
        return float(self._query_int(device_id, Command.QUERY_WHEEL_DEGREES))

    def read_voltage(self, device_id: int) -> float:
        """Supply voltage in volts."""
        return self._query_int(device_id, Command.QUERY_VOLTAGE) / 1000

    def read_temperature(self, device_id: int) -> float:
        """Internal temperature in degrees Celsius."""
        return self._query_int(device_id, Command.QUERY_TEMPERATURE) / 10

    def read_current(self, device_id: int) -> float:
        """Motor current in amps."""
        return self._query_int(device_id, Command.QUERY_CURRENT) / 1000

    def query_color(self, device_id: int) -> LedColor:
        return parse_led_color(self._session.query(device_id, Command.QUERY_LED))

    def query_led_blinking(self, device_id: int) -> LedBlinking:
        return parse_led_blinking(
            self._session.query(device_id, Command.QUERY_LED_BLINK)
        )

    def query_id(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_ID)

    def query_status(self, device_id: int) -> MotorStatus:
        return parse_motor_status(self._session.query(device_id, Command.QUERY_STATUS))

    def query_safety_status(self, device_id: int) -> SafeModeStatus:
        """Why the servo is in safe mode, if it is."""
        response = self._session.query(
            device_id, Command.QUERY_STATUS, SAFETY_STATUS_QUERY
        )
        return parse_safe_mode_status(response)

    def query_motion_profile(self, device_id: int) -> bool:
        return self._query_int(device_id, Command.QUERY_MOTION_PROFILE) != 0

    def read_filter_position_count(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_FILTER_POSITION_COUNT)

    def query_angular_stiffness(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_ANGULAR_STIFFNESS)

    def query_angular_holding(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_ANGULAR_HOLDING)

    def query_angular_acceleration(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_ANGULAR_ACCELERATION)

    def query_angular_deceleration(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_ANGULAR_DECELERATION)

    def query_maximum_motor_duty(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_MAX_MOTOR_DUTY)

    def query_maximum_speed(self, device_id: int) -> float:
        """Maximum speed in degrees per second."""
        return self._query_int(device_id, Command.QUERY_MAX_SPEED_DEGREES) / 10

    def query_firmware_version(self, device_id: int) -> int:
        return self._query_int(device_id, Command.QUERY_FIRMWARE)

    def query_serial_number(self, device_id: int) -> str:
        return parse_text(self._session.query(device_id, Command.QUERY_SERIAL_NUMBER))

    def query_model(self, device_id: int) -> Model:
        return parse_model(self._session.query(device_id, Command.QUERY_MODEL))

    def _query_int(self, device_id: int, command: Command) -> int:
        return parse_int(self._session.query(device_id, command))
