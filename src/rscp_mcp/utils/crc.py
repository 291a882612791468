"""CRC-16/MODBUS checksum used as the default frame checksum provider.

Reflected polynomial 0xA001 (0x8005), initial value 0xFFFF, no final XOR.
This is the algorithm advertised as ``crc_type = 1`` in the CPU query reply.
"""

from __future__ import annotations


def _make_table() -> list[int]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1
        table.append(crc)
    return table


_CRC16_TABLE = _make_table()


def crc16_modbus(data: bytes) -> int:
    """Compute the CRC-16/MODBUS of ``data``.

    Args:
        data: Bytes to checksum (``length || command || payload`` for frames).

    Returns:
        16-bit checksum as an int.
    """
    crc = 0xFFFF
    for byte in data:
        crc = (crc >> 8) ^ _CRC16_TABLE[(crc ^ byte) & 0xFF]
    return crc
