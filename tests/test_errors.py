"""Tests for error codes and status byte conversion."""

import pytest

from rscp_mcp.protocol.errors import (
    ErrorCode,
    FrameTimeout,
    InvalidAnswer,
    NotSupported,
    RSCPError,
    status_from_byte,
    status_to_byte,
)


def test_error_code_values():
    assert [c.value for c in ErrorCode] == [0, -1, -2, -3, -4, -5, -6, -7, -8]


def test_status_byte_is_twos_complement():
    assert status_to_byte(ErrorCode.NOT_SUPPORTED) == 0xFC
    assert status_to_byte(ErrorCode.INVALID_ANSWER) == 0xF8
    assert status_to_byte(2) == 0x02


def test_status_from_byte_is_signed():
    assert status_from_byte(0xFC) == ErrorCode.NOT_SUPPORTED
    assert status_from_byte(0x01) == 1
    assert status_from_byte(0x00) == ErrorCode.OK


def test_status_to_byte_range():
    with pytest.raises(ValueError):
        status_to_byte(-129)
    with pytest.raises(ValueError):
        status_to_byte(256)


def test_exceptions_carry_codes():
    assert FrameTimeout().code == ErrorCode.TIMEOUT
    assert NotSupported().code == ErrorCode.NOT_SUPPORTED
    assert issubclass(InvalidAnswer, RSCPError)
    for cls in RSCPError.__subclasses__():
        assert cls.__doc__, cls.__name__


def test_default_message():
    assert str(FrameTimeout()) == "timeout"
    assert str(InvalidAnswer("wrong command")) == "wrong command"
