"""MCP server entry point for RSCP roller shutter control panels.

Exposes the master's commands as tools and resources via the Model
Context Protocol using the official Python MCP SDK with stdio transport.

Defaults for ``connect`` come from the environment:

- ``RSCP_TRANSPORT``: ``serial``, ``hid`` or ``simulator`` (default ``serial``)
- ``RSCP_SERIAL_PORT``: serial device (default ``/dev/ttyUSB0``)
- ``RSCP_BAUDRATE``: serial baud rate (default 115200)
- ``RSCP_TIMEOUT_TICKS``: reply tick budget (default 1000)
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP

from .master import DEFAULT_TIMEOUT_TICKS, Master
from .protocol.commands import (
    ButtonStatus,
    BuzzerAction,
    Command,
    READ_COMMANDS,
    RelayStatus,
    ResultCode,
    ShutterAction,
    WRITE_COMMANDS,
)
from .protocol.errors import ErrorCode, RSCPError
from .protocol.framing import MAX_PAYLOAD_SIZE, MAX_TX_BUFFER_SIZE, PREAMBLE
from .simulator import SimulatedDevice
from .transport.hid_bridge import PRODUCT_ID, VENDOR_ID, HidBridgeTransport
from .transport.serial_link import DEFAULT_BAUDRATE, SerialTransport

logger = logging.getLogger(__name__)

DEFAULT_SERIAL_PORT = "/dev/ttyUSB0"
TRANSPORTS = ("serial", "hid", "simulator")

mcp = FastMCP(
    "rscp",
    instructions="MCP server for RSCP roller shutter control panels",
)

# Global connection state
_master: Master | None = None
_transport: SerialTransport | HidBridgeTransport | None = None
_simulator: SimulatedDevice | None = None


def _get_master() -> Master:
    """Get the active master, raising if not connected."""
    if _master is None:
        raise RuntimeError("Not connected to a panel. Use the 'connect' tool first.")
    return _master


def _status_name(status: int) -> str:
    for enum in (ResultCode, ErrorCode):
        try:
            return enum(status).name
        except ValueError:
            continue
    return f"CODE_{status}"


def _call(action: Callable[[Master], dict[str, Any]]) -> dict[str, Any]:
    """Run one exchange, reporting protocol failures as an error dict."""
    master = _get_master()
    try:
        return action(master)
    except RSCPError as e:
        logger.warning("Exchange failed: %s", e)
        return {"error": str(e), "code": e.code.name}


def _status_result(command: Command, status: int) -> dict[str, Any]:
    return {
        "command": command.name,
        "status": status,
        "result": _status_name(status),
        "ok": status == ResultCode.OK,
    }


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    transport: str | None = None,
    port: str | None = None,
    baudrate: int | None = None,
    vendor_id: int = VENDOR_ID,
    product_id: int = PRODUCT_ID,
    timeout_ticks: int | None = None,
) -> dict[str, Any]:
    """Open a link to the panel and identify it with a CPU query.

    Args:
        transport: "serial", "hid" or "simulator" (default from RSCP_TRANSPORT).
        port: Serial device for the serial transport.
        baudrate: Serial baud rate.
        vendor_id: USB vendor ID of the HID bridge.
        product_id: USB product ID of the HID bridge.
        timeout_ticks: Reply tick budget; one tick per empty poll.
    """
    global _master, _transport, _simulator
    if _master is not None:
        return {"connected": True, "message": "Already connected"}

    transport = transport or os.environ.get("RSCP_TRANSPORT", "serial")
    if transport not in TRANSPORTS:
        return {"error": f"Unknown transport '{transport}'. Valid: {list(TRANSPORTS)}"}
    if timeout_ticks is None:
        timeout_ticks = int(os.environ.get("RSCP_TIMEOUT_TICKS", DEFAULT_TIMEOUT_TICKS))

    result: dict[str, Any] = {"connected": True, "transport": transport}
    if transport == "simulator":
        _simulator = SimulatedDevice(timeout_ticks=timeout_ticks)
        _master = _simulator.master
    elif transport == "hid":
        _transport = HidBridgeTransport(vendor_id, product_id)
        info = _transport.open()
        result["manufacturer"] = info.manufacturer
        result["product"] = info.product
        _master = Master(_transport, timeout_ticks=timeout_ticks)
    else:
        port = port or os.environ.get("RSCP_SERIAL_PORT", DEFAULT_SERIAL_PORT)
        baudrate = baudrate or int(os.environ.get("RSCP_BAUDRATE", DEFAULT_BAUDRATE))
        _transport = SerialTransport(port, baudrate).open()
        result["port"] = port
        _master = Master(_transport, timeout_ticks=timeout_ticks)

    try:
        result["device"] = _master.query_cpu().to_dict()
    except RSCPError as e:
        logger.warning("Panel did not answer the CPU query: %s", e)
        result["device"] = {"error": str(e), "code": e.code.name}
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the link to the panel."""
    global _master, _transport, _simulator
    if _transport is not None:
        _transport.close()
    _master = None
    _transport = None
    _simulator = None
    return {"disconnected": True}


@mcp.tool()
def get_device_info() -> dict[str, Any]:
    """Query CPU type, protocol and software version, and frame limits."""
    return _call(lambda m: m.query_cpu().to_dict())


# ─── SHUTTER TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def set_shutter_action(shutter: int, action: str, retries: int = 0) -> dict[str, Any]:
    """Move or stop a shutter.

    Args:
        shutter: Shutter index.
        action: One of stop, up, down, open, close.
        retries: Number of times the panel retries the action.
    """
    try:
        code = ShutterAction[action.upper()]
    except KeyError:
        return {"error": f"Unknown action '{action}'. Valid: {[a.name.lower() for a in ShutterAction]}"}
    if not 0 <= shutter <= 255 or not 0 <= retries <= 255:
        return {"error": "Shutter and retries must be 0-255"}
    return _call(lambda m: _status_result(
        Command.SET_SHUTTER_ACTION, m.set_shutter_action(shutter, code, retries)
    ))


@mcp.tool()
def set_shutter_position(shutter: int, position: int) -> dict[str, Any]:
    """Drive a shutter to a position.

    Args:
        shutter: Shutter index.
        position: Target position (0 closed, 100 open on the simulated panel).
    """
    if not 0 <= shutter <= 255 or not 0 <= position <= 255:
        return {"error": "Shutter and position must be 0-255"}
    return _call(lambda m: _status_result(
        Command.SET_SHUTTER_POSITION, m.set_shutter_position(shutter, position)
    ))


@mcp.tool()
def get_shutter_position() -> dict[str, Any]:
    """Read the position of the shutter addressed last."""
    return _call(lambda m: m.get_shutter_position().to_dict())


# ─── RELAY / BUTTON / BUZZER TOOLS ───────────────────────────────────

@mcp.tool()
def set_switch_relay(on: bool) -> dict[str, Any]:
    """Switch the panel relay on or off."""
    status = RelayStatus.ON if on else RelayStatus.OFF
    return _call(lambda m: _status_result(Command.SET_SWITCH_RELAY, m.set_switch_relay(status)))


@mcp.tool()
def get_switch_relay() -> dict[str, Any]:
    """Read the relay state."""
    def read(m: Master) -> dict[str, Any]:
        status = m.get_switch_relay().status
        return {"status": status, "on": status == RelayStatus.ON}

    return _call(read)


@mcp.tool()
def get_switch_button() -> dict[str, Any]:
    """Read the state of the panel's switch button."""
    def read(m: Master) -> dict[str, Any]:
        status = m.get_switch_button().status
        return {"status": status, "pressed": status == ButtonStatus.ON}

    return _call(read)


@mcp.tool()
def set_buzzer_action(on: bool, volume: int = 0, duration_ms: int = 0) -> dict[str, Any]:
    """Sound or silence the buzzer.

    Args:
        on: True to sound the buzzer, False to silence it.
        volume: Buzzer volume (32-bit, panel-defined scale).
        duration_ms: How long to sound, in milliseconds.
    """
    if not 0 <= volume <= 0xFFFFFFFF or not 0 <= duration_ms <= 0xFFFFFFFF:
        return {"error": "Volume and duration must fit in 32 bits"}
    action = BuzzerAction.ON if on else BuzzerAction.OFF
    return _call(lambda m: _status_result(
        Command.SET_BUZZER_ACTION, m.set_buzzer_action(action, volume, duration_ms)
    ))


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("rscp://device/info")
def resource_device_info() -> str:
    """CPU query reply of the connected panel as JSON."""
    return json.dumps(get_device_info(), indent=2)


@mcp.resource("rscp://device/status")
def resource_device_status() -> str:
    """Connection status as JSON."""
    status: dict[str, Any] = {"connected": _master is not None}
    if _simulator is not None:
        status["transport"] = "simulator"
    elif _transport is not None:
        status["transport"] = type(_transport).__name__
    return json.dumps(status, indent=2)


@mcp.resource("rscp://catalog/commands")
def resource_command_catalog() -> str:
    """Command codes, wire limits and value definitions as JSON."""
    return json.dumps({
        "read_commands": {c.name: c.value for c in sorted(READ_COMMANDS)},
        "write_commands": {c.name: c.value for c in sorted(WRITE_COMMANDS)},
        "shutter_actions": {a.name: a.value for a in ShutterAction},
        "result_codes": {r.name: r.value for r in ResultCode},
        "error_codes": {e.name: e.value for e in ErrorCode},
        "preamble": PREAMBLE,
        "max_payload": MAX_PAYLOAD_SIZE,
        "max_frame": MAX_TX_BUFFER_SIZE,
    }, indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
