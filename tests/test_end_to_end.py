"""Master and slave talking over an in-memory link."""

import pytest

from rscp_mcp.master import Master
from rscp_mcp.models import CpuQueryReply
from rscp_mcp.protocol.commands import (
    ButtonStatus,
    BuzzerAction,
    Command,
    RelayStatus,
    ResultCode,
    ShutterAction,
)
from rscp_mcp.protocol.errors import (
    ErrorCode,
    FrameTimeout,
    InvalidAnswer,
    NotSupported,
    RequestFailed,
)
from rscp_mcp.protocol.framing import decode_frame, encode_frame
from rscp_mcp.simulator import SimulatedDevice, SimulatedPanel
from rscp_mcp.slave import Slave, SlaveCallbacks
from rscp_mcp.transport.loopback import LoopbackLink


def _last_reply(device: SimulatedDevice):
    return decode_frame(device.link.slave.sent[-1])


def test_cpu_query():
    """Identification query returns the slave's reply structure verbatim."""
    device = SimulatedDevice()
    data = device.master.request_data(Command.CPU_QUERY, CpuQueryReply.SIZE)

    assert data == CpuQueryReply().to_bytes()
    reply = _last_reply(device)
    assert reply.command == 0x03
    assert reply.is_valid()

    info = device.master.query_cpu()
    assert info.crc_type == 1
    assert info.protocol_version == 1
    assert info.packet_max_len == 30


def test_set_relay_on():
    device = SimulatedDevice()
    status = device.master.set_switch_relay(RelayStatus.ON)

    assert status == ResultCode.OK
    assert device.panel.relay == RelayStatus.ON
    reply = _last_reply(device)
    assert reply.command == 0x07
    assert reply.payload == bytes([ResultCode.OK])
    assert device.master.get_switch_relay().status == RelayStatus.ON


def test_cross_talk_reply_is_invalid_answer():
    """A reply for another command is reported, never returned."""
    link = LoopbackLink()
    link.master.idle = lambda: link.master.inject(
        encode_frame(Command.GET_SWITCH_RELAY, b"\x02")
    )
    with pytest.raises(InvalidAnswer):
        Master(link.master, timeout_ticks=5).request_data(Command.GET_SHUTTER_POSITION, 2)


def test_shutter_open_then_read_position():
    device = SimulatedDevice()
    assert device.master.set_shutter_action(1, ShutterAction.OPEN) == ResultCode.OK
    position = device.master.get_shutter_position()
    assert position.shutter == 1
    assert position.position == 100


def test_shutter_position_out_of_range_is_application_failure():
    device = SimulatedDevice()
    assert device.master.set_shutter_position(0, 150) == ResultCode.NOK
    assert device.master.set_shutter_position(5, 10) == ResultCode.NOK


def test_buzzer_action_reaches_panel():
    device = SimulatedDevice()
    status = device.master.set_buzzer_action(BuzzerAction.ON, volume=80, duration_ms=250)
    assert status == ResultCode.OK
    arg = device.panel.buzzer_log[-1]
    assert (arg.action, arg.volume, arg.duration_ms) == (1, 80, 250)


def test_button_state():
    panel = SimulatedPanel()
    panel.press_button()
    device = SimulatedDevice(panel)
    assert device.master.get_switch_button().status == ButtonStatus.ON


def test_unknown_command_status():
    device = SimulatedDevice()
    assert device.master.send_action(0x42, b"\x00") == ErrorCode.NOT_SUPPORTED


def test_unsupported_read_command():
    link = LoopbackLink()
    slave = Slave(link.slave, SlaveCallbacks())
    link.master.idle = lambda: slave.handle(timeout_ticks=0)
    with pytest.raises(NotSupported):
        Master(link.master, timeout_ticks=5).get_shutter_position()


def test_corrupted_request_gets_no_reply():
    """The slave drops a request with a bad checksum; the master times out."""
    device = SimulatedDevice(timeout_ticks=3)
    device.master.checksum = lambda body: 0x1234
    with pytest.raises(FrameTimeout):
        device.master.set_switch_relay(RelayStatus.ON)
    assert device.link.slave.sent == []
    assert device.panel.relay == RelayStatus.OFF


def test_reservation_beyond_link_capacity():
    link = LoopbackLink(rx_capacity=8)
    with pytest.raises(RequestFailed):
        Master(link.master).query_cpu()
