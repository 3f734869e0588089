"""MCP server entry point for Lynxmotion LSS smart servos.

Exposes driver operations as tools and the protocol catalogues as
resources, using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .driver import LssDriver
from .errors import PacketParsingError, ResponseTimeoutError
from .models.status import LedBlinking, LedColor
from .protocol.commands import CATALOGUE
from .transport.serial_channel import DEFAULT_BAUD_RATE, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "lss-servo",
    instructions="MCP server for Lynxmotion LSS smart servos on a serial bus",
)

# Global connection state
_driver: LssDriver | None = None
_port: str | None = None


def _get_driver() -> LssDriver:
    """Get the active driver, raising if not connected."""
    if _driver is None:
        raise RuntimeError(
            "Not connected to a servo bus. Use the 'connect' tool first."
        )
    return _driver


def _parse_color(color: str) -> LedColor:
    try:
        return LedColor[color.strip().upper()]
    except KeyError:
        raise ValueError(
            f"Unknown color '{color}'. Valid: {[c.name.lower() for c in LedColor]}"
        ) from None


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    port: str,
    baud_rate: int = DEFAULT_BAUD_RATE,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """Open the serial port the servos are attached to.

    Args:
        port: Serial device, e.g. /dev/ttyUSB0 or COM3.
        baud_rate: Bus speed (servo default is 115200).
        timeout: Seconds to wait for each reply.
    """
    global _driver, _port
    if _driver is not None:
        return {"connected": True, "message": "Already connected", "port": _port}

    _driver = LssDriver.open(port, baud_rate=baud_rate, timeout=timeout)
    _port = port
    logger.info("Servo bus ready on %s", port)
    return {"connected": True, "port": port, "baud_rate": baud_rate}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial port."""
    global _driver, _port
    if _driver is None:
        return {"disconnected": True}
    _driver.close()
    _driver = None
    _port = None
    return {"disconnected": True}


# ─── MOTION TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def move_to_position(device_id: int, degrees: float) -> dict[str, Any]:
    """Move a servo to an absolute angle.

    Args:
        device_id: Servo id (0-253, 254 moves every servo).
        degrees: Target angle, 0.1 degree resolution.
    """
    _get_driver().move_to_position(device_id, degrees)
    return {"device_id": device_id, "position": degrees}


@mcp.tool()
def move_relative(device_id: int, degrees: float) -> dict[str, Any]:
    """Move a servo by an angle relative to where it is now."""
    _get_driver().move_relative(device_id, degrees)
    return {"device_id": device_id, "delta": degrees}


@mcp.tool()
def limp(device_id: int) -> dict[str, Any]:
    """Let the servo turn freely."""
    _get_driver().limp(device_id)
    return {"device_id": device_id, "limp": True}


@mcp.tool()
def halt_hold(device_id: int) -> dict[str, Any]:
    """Stop the servo and hold its current position."""
    _get_driver().halt_hold(device_id)
    return {"device_id": device_id, "holding": True}


# ─── CONFIGURATION TOOLS ──────────────────────────────────────────────

@mcp.tool()
def set_color(device_id: int, color: str) -> dict[str, Any]:
    """Set the LED color.

    Args:
        device_id: Servo id.
        color: off, red, green, blue, yellow, cyan, magenta or white.
    """
    led = _parse_color(color)
    _get_driver().set_color(device_id, led)
    return {"device_id": device_id, "color": led.name.lower()}


@mcp.tool()
def set_led_blinking(device_id: int, states: list[str]) -> dict[str, Any]:
    """Make the LED blink while the servo is in any of the given states.

    Args:
        device_id: Servo id.
        states: Any of limp, holding, accelerating, decelerating, free,
            travelling, always_blink. An empty list disables blinking.
    """
    try:
        flags = [LedBlinking[s.strip().upper()] for s in states]
    except KeyError as e:
        return {"error": f"Unknown blinking state {e.args[0]!r}"}
    _get_driver().set_led_blinking(device_id, flags)
    return {"device_id": device_id, "mask": int(LedBlinking.combine(flags))}


@mcp.tool()
def set_motion_profile(device_id: int, enabled: bool) -> dict[str, Any]:
    """Enable or disable the servo's motion profile."""
    _get_driver().set_motion_profile(device_id, enabled)
    return {"device_id": device_id, "motion_profile": enabled}


@mcp.tool()
def set_filter_position_count(device_id: int, count: int) -> dict[str, Any]:
    """Set the position filter length used when the motion profile is off."""
    _get_driver().set_filter_position_count(device_id, count)
    return {"device_id": device_id, "filter_position_count": count}


# ─── QUERY TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def read_telemetry(device_id: int) -> dict[str, Any]:
    """Read voltage (V), temperature (C), current (A) and position (deg)."""
    driver = _get_driver()
    try:
        return {
            "device_id": device_id,
            "voltage": driver.read_voltage(device_id),
            "temperature": driver.read_temperature(device_id),
            "current": driver.read_current(device_id),
            "position": driver.read_position(device_id),
        }
    except ResponseTimeoutError:
        return {"error": f"No response from servo {device_id}"}
    except PacketParsingError as e:
        return {"error": f"Failed to parse response: {e.reason}"}


@mcp.tool()
def query_status(device_id: int) -> dict[str, Any]:
    """Read the motor status and, in safe mode, the reason for it."""
    driver = _get_driver()
    try:
        status = driver.query_status(device_id)
        safety = driver.query_safety_status(device_id)
    except ResponseTimeoutError:
        return {"error": f"No response from servo {device_id}"}
    except PacketParsingError as e:
        return {"error": f"Failed to parse response: {e.reason}"}
    return {
        "device_id": device_id,
        "status": status.name.lower(),
        "safety": safety.name.lower(),
    }


@mcp.tool()
def query_model(device_id: int) -> dict[str, Any]:
    """Read the servo model and firmware version."""
    driver = _get_driver()
    try:
        model = driver.query_model(device_id)
        firmware = driver.query_firmware_version(device_id)
    except ResponseTimeoutError:
        return {"error": f"No response from servo {device_id}"}
    except PacketParsingError as e:
        return {"error": f"Failed to parse response: {e.reason}"}
    return {
        "device_id": device_id,
        "model": model.name,
        "known_model": model.is_known,
        "firmware": firmware,
    }


# ─── RESOURCES ────────────────────────────────────────────────────────

@mcp.resource("lss://catalog/commands")
def resource_command_catalog() -> str:
    """Every opcode with its argument and reply rules."""
    return json.dumps(
        {
            command.value: {
                "name": command.name.lower(),
                "value": entry.value.value,
                "modifiers": entry.modifiers,
                "response": entry.response.value,
            }
            for command, entry in CATALOGUE.items()
        },
        indent=2,
    )


@mcp.resource("lss://catalog/colors")
def resource_color_catalog() -> str:
    return json.dumps({c.name.lower(): int(c) for c in LedColor}, indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
