"""Shared test doubles."""

from __future__ import annotations

from collections import deque

import pytest


class ScriptedTransport:
    """Byte transport that replays canned bytes and records everything else.

    With ``gap`` set, each byte only becomes readable after that many empty
    polls, like a slow link.
    """

    def __init__(
        self,
        rx: bytes = b"",
        write_ok: bool = True,
        reserve_ok: bool = True,
        write_error: Exception | None = None,
        gap: int = 0,
    ) -> None:
        self.rx = deque(rx)
        self.write_ok = write_ok
        self.reserve_ok = reserve_ok
        self.write_error = write_error
        self.gap = gap
        self.written: list[bytes] = []
        self.reserved: list[int] = []
        self.polls = 0
        self.idle_polls = 0
        self._waited = 0

    def try_read_byte(self) -> int | None:
        self.polls += 1
        if self.rx and self._waited >= self.gap:
            self._waited = 0
            return self.rx.popleft()
        return None

    def on_no_byte_available(self) -> None:
        self.idle_polls += 1
        self._waited += 1

    def write(self, data: bytes) -> bool:
        if self.write_error is not None:
            raise self.write_error
        self.written.append(bytes(data))
        return self.write_ok

    def reserve_expected_reply(self, max_length: int) -> bool:
        self.reserved.append(max_length)
        return self.reserve_ok


@pytest.fixture
def scripted():
    """Factory for :class:`ScriptedTransport` instances."""
    return ScriptedTransport
