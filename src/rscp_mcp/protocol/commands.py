"""Command codes and the value definitions used inside their payloads.

Each command is identified by a single byte used both in the request and
in the reply, which echoes it.
"""

from __future__ import annotations

from enum import IntEnum


class Command(IntEnum):
    """Command identifiers. 0x01 and 0x02 are reserved, see :class:`ResultCode`."""

    CPU_QUERY = 0x03
    SET_SHUTTER_ACTION = 0x04
    SET_SHUTTER_POSITION = 0x05
    GET_SHUTTER_POSITION = 0x06
    SET_SWITCH_RELAY = 0x07
    GET_SWITCH_RELAY = 0x08
    SET_BUZZER_ACTION = 0x09
    GET_SWITCH_BUTTON = 0x0A


# Commands whose reply payload is the answer itself
READ_COMMANDS = frozenset({
    Command.CPU_QUERY,
    Command.GET_SHUTTER_POSITION,
    Command.GET_SWITCH_RELAY,
    Command.GET_SWITCH_BUTTON,
})

# Commands answered with a one-byte status frame
WRITE_COMMANDS = frozenset({
    Command.SET_SHUTTER_ACTION,
    Command.SET_SHUTTER_POSITION,
    Command.SET_SWITCH_RELAY,
    Command.SET_BUZZER_ACTION,
})


class ResultCode(IntEnum):
    """Application result codes returned by write commands."""

    OK = 0x00
    FAIL = 0x01  # command failed, lesser failure than NOK
    NOK = 0x02  # command not handled or parameter error


PROTOCOL_VERSION = 0x01
SW_VERSION = 0x01


class CrcType(IntEnum):
    MODBUS16 = 0x01


class CpuType(IntEnum):
    ATMEGA328P_8MHZ = 0x01
    ESP32_WROOM_02D = 0x02


class ShutterAction(IntEnum):
    STOP = 0x01
    UP = 0x02
    DOWN = 0x03
    OPEN = 0x04
    CLOSE = 0x05


class RelayStatus(IntEnum):
    OFF = 0x01
    ON = 0x02


class ButtonStatus(IntEnum):
    OFF = 0x01
    ON = 0x02


class BuzzerAction(IntEnum):
    ON = 0x01
    OFF = 0x02


def command_name(code: int) -> str:
    """Human-readable name for a command byte, ``0x..`` if unknown."""
    try:
        return Command(code).name
    except ValueError:
        return f"0x{code:02X}"
