"""Tests for the master request/reply client."""

import pytest

from rscp_mcp.master import Master
from rscp_mcp.models import CpuQueryReply, ShutterPositionReply
from rscp_mcp.protocol.commands import Command, RelayStatus, ShutterAction
from rscp_mcp.protocol.errors import (
    ErrorCode,
    FrameOverflow,
    FrameTimeout,
    InvalidAnswer,
    MalformedFrame,
    NotSupported,
    RequestFailed,
    TxFailed,
)
from rscp_mcp.protocol.framing import encode_frame


def test_request_data_returns_reply_payload(scripted):
    transport = scripted(encode_frame(0x06, b"\x01\x32"))
    data = Master(transport).request_data(0x06, 2, timeout_ticks=0)
    assert data == b"\x01\x32"


def test_request_data_sends_empty_payload(scripted):
    transport = scripted(encode_frame(0x06, b"\x01\x32"))
    Master(transport).request_data(0x06, 2, timeout_ticks=0)
    assert transport.written == [encode_frame(0x06)]


def test_request_data_reserves_reply_size(scripted):
    """Preamble + length + command + payload + checksum."""
    transport = scripted(encode_frame(0x03, bytes(8)))
    Master(transport).request_data(0x03, 8, timeout_ticks=0)
    assert transport.reserved == [1 + 1 + 1 + 8 + 2]


def test_request_data_copies_exactly_expected_length(scripted):
    transport = scripted(encode_frame(0x06, b"\x01\x32\x99"))
    assert Master(transport).request_data(0x06, 2, timeout_ticks=0) == b"\x01\x32"


def test_command_mismatch_is_invalid_answer(scripted):
    """A reply for another command is rejected, not returned."""
    transport = scripted(encode_frame(0x08, b"\x02"))
    with pytest.raises(InvalidAnswer) as excinfo:
        Master(transport).request_data(0x06, 1, timeout_ticks=0)
    assert excinfo.value.code == ErrorCode.INVALID_ANSWER


def test_bad_checksum_is_malformed(scripted):
    reply = bytearray(encode_frame(0x06, b"\x01\x32"))
    reply[3] ^= 0x40
    with pytest.raises(MalformedFrame):
        Master(scripted(bytes(reply))).request_data(0x06, 2, timeout_ticks=0)


def test_checksum_checked_before_command(scripted):
    """A corrupted reply for another command reports Malformed."""
    reply = bytearray(encode_frame(0x08, b"\x02"))
    reply[-1] ^= 0x01
    with pytest.raises(MalformedFrame):
        Master(scripted(bytes(reply))).request_data(0x06, 1, timeout_ticks=0)


def test_rejected_write_is_tx_failed(scripted):
    transport = scripted(write_ok=False)
    with pytest.raises(TxFailed):
        Master(transport).request_data(0x03, 8, timeout_ticks=0)
    assert transport.reserved == []


def test_write_error_is_tx_failed(scripted):
    error = OSError("bus fault")
    with pytest.raises(TxFailed) as excinfo:
        Master(scripted(write_error=error)).send_action(0x07, b"\x02", timeout_ticks=0)
    assert excinfo.value.__cause__ is error


def test_rejected_reservation_is_request_failed(scripted):
    transport = scripted(encode_frame(0x03, bytes(8)), reserve_ok=False)
    with pytest.raises(RequestFailed):
        Master(transport).request_data(0x03, 8, timeout_ticks=0)
    # nothing was read
    assert len(transport.rx) == len(encode_frame(0x03, bytes(8)))


def test_timeout_is_not_retried(scripted):
    transport = scripted()
    with pytest.raises(FrameTimeout):
        Master(transport).request_data(0x03, 8, timeout_ticks=4)
    assert len(transport.written) == 1
    assert transport.idle_polls == 4


def test_default_timeout_ticks(scripted):
    transport = scripted()
    with pytest.raises(FrameTimeout):
        Master(transport, timeout_ticks=2).send_action(0x07, b"\x02")
    assert transport.idle_polls == 2


def test_oversized_reply_overflows(scripted):
    transport = scripted(bytes([0xAA, 40, 0x03]) + bytes(40))
    with pytest.raises(FrameOverflow):
        Master(transport).request_data(0x03, 8, timeout_ticks=0)


def test_short_reply_is_invalid_answer(scripted):
    transport = scripted(encode_frame(0x06, b"\x01"))
    with pytest.raises(InvalidAnswer):
        Master(transport).request_data(0x06, 2, timeout_ticks=0)


def test_not_supported_status_on_read(scripted):
    transport = scripted(encode_frame(0x06, b"\xFC"))
    with pytest.raises(NotSupported):
        Master(transport).request_data(0x06, 2, timeout_ticks=0)


def test_request_data_rejects_bad_length(scripted):
    with pytest.raises(ValueError):
        Master(scripted()).request_data(0x03, 27)


def test_send_action_returns_status(scripted):
    transport = scripted(encode_frame(0x07, b"\x00"))
    assert Master(transport).send_action(0x07, b"\x02", timeout_ticks=0) == 0
    assert transport.written == [encode_frame(0x07, b"\x02")]
    assert transport.reserved == [6]


def test_send_action_status_is_signed(scripted):
    transport = scripted(encode_frame(0x07, b"\xFC"))
    status = Master(transport).send_action(0x07, b"\x02", timeout_ticks=0)
    assert status == ErrorCode.NOT_SUPPORTED


def test_send_action_without_status_byte(scripted):
    transport = scripted(encode_frame(0x07))
    with pytest.raises(InvalidAnswer):
        Master(transport).send_action(0x07, b"\x02", timeout_ticks=0)


def test_query_cpu(scripted):
    reply = CpuQueryReply(cpu_type=2, sw_version=3)
    transport = scripted(encode_frame(Command.CPU_QUERY, reply.to_bytes()))
    assert Master(transport).query_cpu(timeout_ticks=0) == reply


def test_get_shutter_position(scripted):
    transport = scripted(encode_frame(Command.GET_SHUTTER_POSITION, b"\x01\x40"))
    position = Master(transport).get_shutter_position(timeout_ticks=0)
    assert position == ShutterPositionReply(shutter=1, position=0x40)


def test_set_switch_relay_payload(scripted):
    transport = scripted(encode_frame(Command.SET_SWITCH_RELAY, b"\x00"))
    Master(transport).set_switch_relay(RelayStatus.ON, timeout_ticks=0)
    assert transport.written == [encode_frame(Command.SET_SWITCH_RELAY, b"\x02")]


def test_set_shutter_action_payload(scripted):
    transport = scripted(encode_frame(Command.SET_SHUTTER_ACTION, b"\x01"))
    status = Master(transport).set_shutter_action(2, ShutterAction.UP, 1, timeout_ticks=0)
    assert status == 1
    assert transport.written == [encode_frame(Command.SET_SHUTTER_ACTION, b"\x02\x02\x01")]


def test_typed_commands_validate_arguments(scripted):
    master = Master(scripted())
    with pytest.raises(ValueError):
        master.set_shutter_position(0, 256)
    with pytest.raises(ValueError):
        master.set_buzzer_action(1, volume=-1)
