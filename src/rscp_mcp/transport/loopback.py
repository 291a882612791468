"""In-memory transport pair for simulation and tests.

Bytes written on one end become readable on the other. Nothing blocks:
a failed poll only counts the poll and runs the optional ``idle`` hook,
which is where a single-threaded simulation services the peer.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_RX_CAPACITY = 64


class LoopbackTransport:
    """One end of a :class:`LoopbackLink`."""

    def __init__(self, name: str = "", rx_capacity: int = DEFAULT_RX_CAPACITY) -> None:
        self.name = name
        self.rx_capacity = rx_capacity
        self.peer: LoopbackTransport | None = None
        self.idle: Callable[[], None] | None = None
        self.idle_polls = 0
        self.sent: list[bytes] = []
        self.reserved: int | None = None
        self._rx: deque[int] = deque()

    @property
    def in_waiting(self) -> int:
        return len(self._rx)

    def inject(self, data: bytes) -> None:
        """Place raw bytes in the receive buffer, as if sent by the peer."""
        self._rx.extend(data)

    def try_read_byte(self) -> int | None:
        if self._rx:
            return self._rx.popleft()
        return None

    def on_no_byte_available(self) -> None:
        self.idle_polls += 1
        if self.idle is not None:
            self.idle()

    def write(self, data: bytes) -> bool:
        if self.peer is None:
            logger.warning("%s: write with no peer attached", self.name or "loopback")
            return False
        self.sent.append(bytes(data))
        self.peer.inject(data)
        return True

    def reserve_expected_reply(self, max_length: int) -> bool:
        if max_length > self.rx_capacity:
            logger.debug(
                "%s: reservation of %d bytes exceeds capacity %d",
                self.name or "loopback", max_length, self.rx_capacity,
            )
            return False
        self.reserved = max_length
        return True


class LoopbackLink:
    """Two connected :class:`LoopbackTransport` ends.

    Usage::

        link = LoopbackLink()
        master = Master(link.master)
        slave = Slave(link.slave, callbacks)
    """

    def __init__(self, rx_capacity: int = DEFAULT_RX_CAPACITY) -> None:
        self.master = LoopbackTransport("master", rx_capacity)
        self.slave = LoopbackTransport("slave", rx_capacity)
        self.master.peer = self.slave
        self.slave.peer = self.master
