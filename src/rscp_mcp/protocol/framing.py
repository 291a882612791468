"""Frame encoder and synchronizing decoder.

Frame layout::

    +----------+--------+---------+------------------+--------+--------+
    | Preamble | Length | Command |     Payload      | CRC hi | CRC lo |
    | 0xAA     | 1 byte | 1 byte  |   0..26 bytes    | 1 byte | 1 byte |
    +----------+--------+---------+------------------+--------+--------+

- Length: byte count of (length + command + payload), excludes the CRC
- CRC: checksum over exactly ``length`` bytes starting at the length field
- Preamble bytes may repeat any number of times before a frame and are
  skipped while searching for the length byte

The decoder only assembles frames. It never checks the CRC; callers do that
with :meth:`Frame.is_valid` because the checksum algorithm is injected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from ..utils.crc import crc16_modbus
from .errors import FrameOverflow, FrameTimeout, TxFailed

logger = logging.getLogger(__name__)

Checksum = Callable[[bytes], int]

PREAMBLE = 0xAA
HEADER_SIZE = 2  # length + command
CHECKSUM_SIZE = 2
MAX_PAYLOAD_SIZE = 26
MAX_TX_BUFFER_SIZE = 64
# Size of one in-memory frame record, reported to masters as packet_max_len
FRAME_RECORD_SIZE = HEADER_SIZE + MAX_PAYLOAD_SIZE + CHECKSUM_SIZE


@dataclass
class Frame:
    """A decoded protocol frame. The checksum is as received, unverified."""

    length: int
    command: int
    payload: bytes = b""
    checksum: int = 0

    @property
    def body(self) -> bytes:
        """The checksummed range: ``length || command || payload``."""
        return (bytes([self.length & 0xFF, self.command & 0xFF]) + self.payload)[: self.length]

    def is_valid(self, checksum: Checksum = crc16_modbus) -> bool:
        """Recompute the checksum over :attr:`body` and compare."""
        return checksum(self.body) == self.checksum

    def __repr__(self) -> str:
        return (
            f"Frame(length={self.length}, command=0x{self.command:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'}, "
            f"checksum=0x{self.checksum:04X})"
        )


def encode_frame(
    command: int,
    payload: bytes = b"",
    checksum: Checksum = crc16_modbus,
) -> bytes:
    """Build the on-wire bytes for one frame.

    Args:
        command: Single-byte command code.
        payload: Command-specific payload, at most ``MAX_PAYLOAD_SIZE`` bytes.
        checksum: Checksum provider applied to ``length || command || payload``.

    Returns:
        Preamble, header, payload and big-endian checksum.

    Raises:
        ValueError: If the command is not a byte or the frame does not fit
            the transmit buffer.
    """
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command must be 0-255, got {command}")
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"Payload must be at most {MAX_PAYLOAD_SIZE} bytes, got {len(payload)}"
        )
    body = bytes([HEADER_SIZE + len(payload), command]) + bytes(payload)
    if 1 + len(body) + CHECKSUM_SIZE > MAX_TX_BUFFER_SIZE:
        raise ValueError(
            f"Frame of {1 + len(body) + CHECKSUM_SIZE} bytes exceeds the "
            f"{MAX_TX_BUFFER_SIZE}-byte transmit buffer"
        )
    crc = checksum(body) & 0xFFFF
    return bytes([PREAMBLE]) + body + crc.to_bytes(2, "big")


class DecodeState(IntEnum):
    """Receive states of :class:`FrameDecoder`."""

    SEEK_LENGTH = 0
    READ_COMMAND = 1
    READ_PAYLOAD = 2
    READ_CHECKSUM_HI = 3
    READ_CHECKSUM_LO = 4


class FrameDecoder:
    """Byte-at-a-time frame synchronizer.

    Feed bytes with :meth:`feed`; it returns a :class:`Frame` when the low
    checksum byte arrives and ``None`` otherwise. After a frame completes or
    an overflow is raised the decoder starts over in ``SEEK_LENGTH``.
    """

    def __init__(self, capacity: int = MAX_PAYLOAD_SIZE) -> None:
        self.capacity = capacity
        self.reset()

    def reset(self) -> None:
        self.state = DecodeState.SEEK_LENGTH
        self._length = 0
        self._command = 0
        self._payload = bytearray()
        self._checksum = 0

    def feed(self, byte: int) -> Frame | None:
        """Advance the state machine by one byte.

        Raises:
            FrameOverflow: If the payload buffer is full and the length
                field still asks for more bytes.
        """
        state = self.state
        if state is DecodeState.SEEK_LENGTH:
            if byte != PREAMBLE:
                self._length = byte
                self.state = DecodeState.READ_COMMAND
        elif state is DecodeState.READ_COMMAND:
            self._command = byte
            if self._length > HEADER_SIZE:
                self.state = DecodeState.READ_PAYLOAD
            else:
                self.state = DecodeState.READ_CHECKSUM_HI
        elif state is DecodeState.READ_PAYLOAD:
            if len(self._payload) >= self.capacity:
                length = self._length
                self.reset()
                raise FrameOverflow(
                    f"Length {length} needs more than {self.capacity} payload bytes"
                )
            self._payload.append(byte)
            if len(self._payload) >= self._length - HEADER_SIZE:
                self.state = DecodeState.READ_CHECKSUM_HI
        elif state is DecodeState.READ_CHECKSUM_HI:
            self._checksum = byte << 8
            self.state = DecodeState.READ_CHECKSUM_LO
        else:
            frame = Frame(
                length=self._length,
                command=self._command,
                payload=bytes(self._payload),
                checksum=self._checksum | byte,
            )
            self.reset()
            return frame
        return None


def decode_frame(data: bytes) -> Frame:
    """Decode the first complete frame found in ``data``.

    Raises:
        ValueError: If ``data`` ends before a frame completes.
        FrameOverflow: If the length field exceeds the payload capacity.
    """
    decoder = FrameDecoder()
    for byte in data:
        frame = decoder.feed(byte)
        if frame is not None:
            return frame
    raise ValueError(f"No complete frame in {len(data)} bytes")


def send_frame(
    transport,
    command: int,
    payload: bytes = b"",
    checksum: Checksum = crc16_modbus,
) -> bytes:
    """Encode a frame and hand it to ``transport``.

    Returns:
        The bytes that were written.

    Raises:
        TxFailed: If the transport rejects the write or raises ``OSError``.
    """
    data = encode_frame(command, payload, checksum)
    try:
        accepted = transport.write(data)
    except OSError as e:
        raise TxFailed(f"Transport write failed: {e}") from e
    if not accepted:
        raise TxFailed(f"Transport rejected {len(data)}-byte frame")
    logger.debug("TX %s", data.hex(" "))
    return data


def read_byte(transport, timeout_ticks: int) -> int:
    """Poll ``transport`` for one byte, spending a tick per failed poll.

    Raises:
        FrameTimeout: When a poll fails with no ticks left.
    """
    ticks = timeout_ticks
    while True:
        byte = transport.try_read_byte()
        if byte is not None:
            return byte
        if ticks <= 0:
            raise FrameTimeout("No byte received within the tick budget")
        ticks -= 1
        transport.on_no_byte_available()


def read_frame(transport, timeout_ticks: int) -> Frame:
    """Block until one frame is assembled from ``transport``.

    Every byte gets the full ``timeout_ticks`` budget: each failed poll
    consumes one tick and calls ``transport.on_no_byte_available()``. A
    budget of zero makes the read non-blocking.

    Raises:
        FrameTimeout: If a byte does not arrive in time. Partial data is
            discarded.
        FrameOverflow: If the length field exceeds the payload capacity.
    """
    decoder = FrameDecoder()
    while True:
        frame = decoder.feed(read_byte(transport, timeout_ticks))
        if frame is not None:
            logger.debug("RX %r", frame)
            return frame
