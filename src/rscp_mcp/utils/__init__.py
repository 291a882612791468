"""Shared helpers."""

from .crc import crc16_modbus
