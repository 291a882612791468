"""Master side: send one request and wait for exactly one matching reply.

Usage::

    link = SerialTransport("/dev/ttyUSB0").open()
    master = Master(link)
    info = master.query_cpu()
    status = master.set_switch_relay(RelayStatus.ON)

Every exchange is synchronous. Failures raise an :class:`RSCPError`
subclass and are never retried here; application result codes of write
commands are returned, not raised.
"""

from __future__ import annotations

import logging

from .models.arguments import (
    BuzzerActionArg,
    ShutterActionArg,
    ShutterPositionArg,
    SwitchRelayArg,
)
from .models.replies import (
    CpuQueryReply,
    ShutterPositionReply,
    SwitchButtonReply,
    SwitchRelayReply,
)
from .protocol.commands import Command, command_name
from .protocol.errors import (
    ErrorCode,
    InvalidAnswer,
    MalformedFrame,
    NotSupported,
    RequestFailed,
    status_from_byte,
)
from .protocol.framing import (
    CHECKSUM_SIZE,
    HEADER_SIZE,
    MAX_PAYLOAD_SIZE,
    Checksum,
    Frame,
    read_frame,
    send_frame,
)
from .utils.crc import crc16_modbus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_TICKS = 1000
STATUS_REPLY_SIZE = 1


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")


class Master:
    """Request/reply client for one slave on ``transport``.

    Args:
        transport: Any :class:`~rscp_mcp.transport.base.ByteTransport`.
        checksum: Checksum provider shared with the slave.
        timeout_ticks: Default tick budget for each reply.
    """

    def __init__(
        self,
        transport,
        checksum: Checksum = crc16_modbus,
        timeout_ticks: int = DEFAULT_TIMEOUT_TICKS,
    ) -> None:
        self.transport = transport
        self.checksum = checksum
        self.timeout_ticks = timeout_ticks

    def _exchange(
        self,
        command: int,
        payload: bytes,
        reply_payload_size: int,
        timeout_ticks: int | None,
    ) -> Frame:
        send_frame(self.transport, command, payload, self.checksum)

        reply_size = 1 + HEADER_SIZE + reply_payload_size + CHECKSUM_SIZE
        try:
            reserved = self.transport.reserve_expected_reply(reply_size)
        except OSError as e:
            raise RequestFailed(f"Reply reservation failed: {e}") from e
        if not reserved:
            raise RequestFailed(f"Transport cannot receive a {reply_size}-byte reply")

        ticks = self.timeout_ticks if timeout_ticks is None else timeout_ticks
        frame = read_frame(self.transport, ticks)

        if not frame.is_valid(self.checksum):
            raise MalformedFrame(f"Checksum mismatch in reply to {command_name(command)}")
        if frame.command != command:
            raise InvalidAnswer(
                f"Sent {command_name(command)}, "
                f"reply carries {command_name(frame.command)}"
            )
        return frame

    def request_data(
        self,
        command: int,
        expected_reply_length: int,
        timeout_ticks: int | None = None,
    ) -> bytes:
        """Send ``command`` with no payload and return its reply data.

        Args:
            command: Read command code.
            expected_reply_length: Size of the reply structure in bytes.
            timeout_ticks: Tick budget, defaults to :attr:`timeout_ticks`.

        Returns:
            Exactly ``expected_reply_length`` payload bytes.

        Raises:
            NotSupported: If the slave answered with a NOT_SUPPORTED status.
            InvalidAnswer: If the reply is for another command or too short.
        """
        if not 0 <= expected_reply_length <= MAX_PAYLOAD_SIZE:
            raise ValueError(
                f"Reply length must be 0-{MAX_PAYLOAD_SIZE}, got {expected_reply_length}"
            )
        frame = self._exchange(command, b"", expected_reply_length, timeout_ticks)

        payload = frame.payload
        if len(payload) < expected_reply_length:
            if (
                len(payload) == STATUS_REPLY_SIZE
                and status_from_byte(payload[0]) == ErrorCode.NOT_SUPPORTED
            ):
                raise NotSupported(f"{command_name(command)} is not supported by the slave")
            raise InvalidAnswer(
                f"Expected {expected_reply_length} reply bytes, got {len(payload)}"
            )
        return payload[:expected_reply_length]

    def send_action(
        self,
        command: int,
        payload: bytes,
        timeout_ticks: int | None = None,
    ) -> int:
        """Send ``command`` with an argument payload and return its status.

        Returns:
            The slave's signed status code; ``ErrorCode.OK`` (0) on success.
        """
        frame = self._exchange(command, payload, STATUS_REPLY_SIZE, timeout_ticks)
        if not frame.payload:
            raise InvalidAnswer(f"Reply to {command_name(command)} carries no status byte")
        status = status_from_byte(frame.payload[0])
        logger.debug("%s -> status %d", command_name(command), status)
        return status

    # ─── Typed commands ──────────────────────────────────────────────

    def query_cpu(self, timeout_ticks: int | None = None) -> CpuQueryReply:
        """Identify the slave CPU, protocol version and frame limits."""
        data = self.request_data(Command.CPU_QUERY, CpuQueryReply.SIZE, timeout_ticks)
        return CpuQueryReply.from_bytes(data)

    def set_shutter_action(
        self,
        shutter: int,
        action: int,
        retries: int = 0,
        timeout_ticks: int | None = None,
    ) -> int:
        """Start, stop or reverse a shutter. See :class:`ShutterAction`."""
        _check_byte("Shutter", shutter)
        _check_byte("Action", action)
        _check_byte("Retries", retries)
        arg = ShutterActionArg(shutter=shutter, action=action, retries=retries)
        return self.send_action(Command.SET_SHUTTER_ACTION, arg.to_bytes(), timeout_ticks)

    def set_shutter_position(
        self, shutter: int, position: int, timeout_ticks: int | None = None
    ) -> int:
        _check_byte("Shutter", shutter)
        _check_byte("Position", position)
        arg = ShutterPositionArg(shutter=shutter, position=position)
        return self.send_action(Command.SET_SHUTTER_POSITION, arg.to_bytes(), timeout_ticks)

    def get_shutter_position(self, timeout_ticks: int | None = None) -> ShutterPositionReply:
        data = self.request_data(
            Command.GET_SHUTTER_POSITION, ShutterPositionReply.SIZE, timeout_ticks
        )
        return ShutterPositionReply.from_bytes(data)

    def set_switch_relay(self, status: int, timeout_ticks: int | None = None) -> int:
        """Switch the relay. See :class:`RelayStatus`."""
        _check_byte("Relay status", status)
        arg = SwitchRelayArg(status=status)
        return self.send_action(Command.SET_SWITCH_RELAY, arg.to_bytes(), timeout_ticks)

    def get_switch_relay(self, timeout_ticks: int | None = None) -> SwitchRelayReply:
        data = self.request_data(Command.GET_SWITCH_RELAY, SwitchRelayReply.SIZE, timeout_ticks)
        return SwitchRelayReply.from_bytes(data)

    def set_buzzer_action(
        self,
        action: int,
        volume: int = 0,
        duration_ms: int = 0,
        timeout_ticks: int | None = None,
    ) -> int:
        _check_byte("Buzzer action", action)
        for name, value in (("Volume", volume), ("Duration", duration_ms)):
            if not 0 <= value <= 0xFFFFFFFF:
                raise ValueError(f"{name} must fit in 32 bits, got {value}")
        arg = BuzzerActionArg(action=action, volume=volume, duration_ms=duration_ms)
        return self.send_action(Command.SET_BUZZER_ACTION, arg.to_bytes(), timeout_ticks)

    def get_switch_button(self, timeout_ticks: int | None = None) -> SwitchButtonReply:
        data = self.request_data(
            Command.GET_SWITCH_BUTTON, SwitchButtonReply.SIZE, timeout_ticks
        )
        return SwitchButtonReply.from_bytes(data)
