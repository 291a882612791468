"""Byte transports: serial, USB HID bridge and in-memory loopback."""

from .base import ByteTransport
from .loopback import LoopbackLink, LoopbackTransport
