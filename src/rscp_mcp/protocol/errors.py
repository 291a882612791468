"""Protocol error codes and the exceptions that carry them.

Codes are signed and travel on the wire as a single byte in status
replies, so ``NOT_SUPPORTED`` (-4) is sent as ``0xFC``.
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Protocol-level result codes."""

    OK = 0
    TIMEOUT = -1
    OVERFLOW = -2
    MALFORMED = -3
    NOT_SUPPORTED = -4
    TX_FAILED = -5
    REQUEST_FAILED = -6
    TASK_BUFFER_FULL = -7
    INVALID_ANSWER = -8


def status_to_byte(code: int) -> int:
    """Encode a signed status code as a wire byte."""
    if not -128 <= code <= 255:
        raise ValueError(f"Status code must fit in one byte, got {code}")
    return code & 0xFF


def status_from_byte(value: int) -> int:
    """Decode a wire byte into a signed status code."""
    return value - 0x100 if value & 0x80 else value


class RSCPError(Exception):
    """Base class for all protocol failures."""

    code: ErrorCode = ErrorCode.OK

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code.name.lower().replace("_", " "))


class FrameTimeout(RSCPError):
    """A frame byte did not arrive within the tick budget."""

    code = ErrorCode.TIMEOUT


class FrameOverflow(RSCPError):
    """The frame's length field asked for more payload than fits."""

    code = ErrorCode.OVERFLOW


class MalformedFrame(RSCPError):
    """Checksum verification failed."""

    code = ErrorCode.MALFORMED


class NotSupported(RSCPError):
    """The slave does not handle this command."""

    code = ErrorCode.NOT_SUPPORTED


class TxFailed(RSCPError):
    """The transport rejected a write."""

    code = ErrorCode.TX_FAILED


class RequestFailed(RSCPError):
    """The transport rejected a reply-size reservation."""

    code = ErrorCode.REQUEST_FAILED


class InvalidAnswer(RSCPError):
    """The reply did not answer the request that was sent."""

    code = ErrorCode.INVALID_ANSWER
