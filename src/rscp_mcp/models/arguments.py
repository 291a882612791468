"""Fixed-layout argument structures carried by write commands.

All structures are packed. Multi-byte fields are little-endian, matching the
in-memory layout on the panel CPUs.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, asdict
from typing import ClassVar

from ..protocol.commands import BuzzerAction, RelayStatus, ShutterAction


@dataclass
class Structure:
    """Base class for fixed-layout payload structures."""

    SIZE: ClassVar[int] = 0
    FORMAT: ClassVar[str] = ""

    def to_bytes(self) -> bytes:
        return struct.pack(self.FORMAT, *self._values())

    def _values(self) -> tuple:
        return tuple(asdict(self).values())

    @classmethod
    def from_bytes(cls, data: bytes):
        """Reinterpret ``data`` as this structure.

        Short input is zero-filled and extra bytes are ignored, so any
        payload maps onto exactly one structure.
        """
        if len(data) < cls.SIZE:
            data = data + b"\x00" * (cls.SIZE - len(data))
        return cls(*struct.unpack(cls.FORMAT, data[: cls.SIZE]))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ShutterActionArg(Structure):
    """SET_SHUTTER_ACTION argument (3 bytes)."""

    SIZE: ClassVar[int] = 3
    FORMAT: ClassVar[str] = "<BBB"
    shutter: int = 0
    action: int = ShutterAction.STOP
    retries: int = 0


@dataclass
class ShutterPositionArg(Structure):
    """SET_SHUTTER_POSITION argument (2 bytes)."""

    SIZE: ClassVar[int] = 2
    FORMAT: ClassVar[str] = "<BB"
    shutter: int = 0
    position: int = 0


@dataclass
class SwitchRelayArg(Structure):
    """SET_SWITCH_RELAY argument (1 byte)."""

    SIZE: ClassVar[int] = 1
    FORMAT: ClassVar[str] = "<B"
    status: int = RelayStatus.OFF


@dataclass
class BuzzerActionArg(Structure):
    """SET_BUZZER_ACTION argument (9 bytes)."""

    SIZE: ClassVar[int] = 9
    FORMAT: ClassVar[str] = "<BII"
    action: int = BuzzerAction.OFF
    volume: int = 0
    duration_ms: int = 0
