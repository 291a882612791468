"""Byte transport interface consumed by the master and the slave.

Any object with these four methods can carry frames: hardware links,
in-memory loopbacks or test doubles.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteTransport(Protocol):
    """Non-blocking byte source plus a frame sink."""

    def try_read_byte(self) -> int | None:
        """Return the next received byte, or ``None`` if none is buffered."""
        ...

    def on_no_byte_available(self) -> None:
        """Called once per failed poll, to wait or yield before retrying."""
        ...

    def write(self, data: bytes) -> bool:
        """Transmit one encoded frame. Return ``False`` if rejected."""
        ...

    def reserve_expected_reply(self, max_length: int) -> bool:
        """Announce the size of the next expected reply.

        Return ``False`` if the transport cannot receive that many bytes.
        """
        ...
