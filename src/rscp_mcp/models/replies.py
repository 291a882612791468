"""Fixed-layout reply structures returned by read commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ..protocol.commands import (
    PROTOCOL_VERSION,
    SW_VERSION,
    ButtonStatus,
    CpuType,
    CrcType,
    RelayStatus,
)
from ..protocol.framing import FRAME_RECORD_SIZE
from .arguments import Structure


@dataclass
class CpuQueryReply(Structure):
    """CPU_QUERY reply (8 bytes): identity and protocol capabilities."""

    SIZE: ClassVar[int] = 8
    FORMAT: ClassVar[str] = "<HBBBBH"
    flags: int = 0
    crc_type: int = CrcType.MODBUS16
    protocol_version: int = PROTOCOL_VERSION
    cpu_type: int = CpuType.ATMEGA328P_8MHZ
    sw_version: int = SW_VERSION
    packet_max_len: int = FRAME_RECORD_SIZE


@dataclass
class ShutterPositionReply(Structure):
    SIZE: ClassVar[int] = 2
    FORMAT: ClassVar[str] = "<BB"
    shutter: int = 0
    position: int = 0


@dataclass
class SwitchRelayReply(Structure):
    SIZE: ClassVar[int] = 1
    FORMAT: ClassVar[str] = "<B"
    status: int = RelayStatus.OFF


@dataclass
class SwitchButtonReply(Structure):
    SIZE: ClassVar[int] = 1
    FORMAT: ClassVar[str] = "<B"
    status: int = ButtonStatus.OFF
