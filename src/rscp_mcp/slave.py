"""Slave side: wait for one request, dispatch it and send one reply.

Read commands are answered with the reply structure from the matching
getter. Write commands are answered with a one-byte status frame carrying
the setter's result code. Both replies echo the request's command byte.

Requests with a bad checksum are dropped without a reply: the command byte
itself cannot be trusted, so the master is left to time out.
"""

from __future__ import annotations

import logging

from .models.arguments import (
    BuzzerActionArg,
    ShutterActionArg,
    ShutterPositionArg,
    Structure,
    SwitchRelayArg,
)
from .models.replies import (
    CpuQueryReply,
    ShutterPositionReply,
    SwitchButtonReply,
    SwitchRelayReply,
)
from .protocol.commands import SW_VERSION, Command, CpuType, command_name
from .protocol.errors import ErrorCode, MalformedFrame, status_to_byte
from .protocol.framing import Checksum, Frame, decode_frame, read_frame, send_frame
from .utils.crc import crc16_modbus

logger = logging.getLogger(__name__)


class SlaveCallbacks:
    """Application hooks called by :class:`Slave`.

    Override the getters and setters the device supports. Getters return a
    reply structure, or ``None`` if the device has no such state. Setters
    return a result code, ``ErrorCode.OK`` on success. Everything not
    overridden is reported to the master as NOT_SUPPORTED, except the CPU
    query, which is answered from :attr:`cpu_type` and :attr:`sw_version`.
    """

    cpu_type: int = CpuType.ATMEGA328P_8MHZ
    sw_version: int = SW_VERSION
    flags: int = 0

    def get_cpu_query(self) -> CpuQueryReply | None:
        return CpuQueryReply(
            flags=self.flags,
            cpu_type=self.cpu_type,
            sw_version=self.sw_version,
        )

    def get_shutter_position(self) -> ShutterPositionReply | None:
        return None

    def get_switch_relay(self) -> SwitchRelayReply | None:
        return None

    def get_switch_button(self) -> SwitchButtonReply | None:
        return None

    def set_shutter_action(self, arg: ShutterActionArg) -> int:
        return ErrorCode.NOT_SUPPORTED

    def set_shutter_position(self, arg: ShutterPositionArg) -> int:
        return ErrorCode.NOT_SUPPORTED

    def set_switch_relay(self, arg: SwitchRelayArg) -> int:
        return ErrorCode.NOT_SUPPORTED

    def set_buzzer_action(self, arg: BuzzerActionArg) -> int:
        return ErrorCode.NOT_SUPPORTED


# Read command -> getter name
READ_HANDLERS: dict[Command, str] = {
    Command.CPU_QUERY: "get_cpu_query",
    Command.GET_SHUTTER_POSITION: "get_shutter_position",
    Command.GET_SWITCH_RELAY: "get_switch_relay",
    Command.GET_SWITCH_BUTTON: "get_switch_button",
}

# Write command -> (setter name, argument structure)
WRITE_HANDLERS: dict[Command, tuple[str, type[Structure]]] = {
    Command.SET_SHUTTER_ACTION: ("set_shutter_action", ShutterActionArg),
    Command.SET_SHUTTER_POSITION: ("set_shutter_position", ShutterPositionArg),
    Command.SET_SWITCH_RELAY: ("set_switch_relay", SwitchRelayArg),
    Command.SET_BUZZER_ACTION: ("set_buzzer_action", BuzzerActionArg),
}


class Slave:
    """Request dispatcher for one master on ``transport``."""

    def __init__(
        self,
        transport,
        callbacks: SlaveCallbacks,
        checksum: Checksum = crc16_modbus,
    ) -> None:
        self.transport = transport
        self.callbacks = callbacks
        self.checksum = checksum

    def handle(self, timeout_ticks: int) -> Frame:
        """Serve one request.

        Returns:
            The reply frame that was sent.

        Raises:
            FrameTimeout, FrameOverflow: Nothing usable arrived; no reply.
            MalformedFrame: Checksum mismatch; the request is dropped.
            TxFailed: The reply could not be written.
        """
        frame = read_frame(self.transport, timeout_ticks)
        if not frame.is_valid(self.checksum):
            logger.warning("Dropping request with bad checksum: %r", frame)
            raise MalformedFrame(f"Checksum mismatch in request 0x{frame.command:02X}")

        command = frame.command
        if command in READ_HANDLERS:
            reply = getattr(self.callbacks, READ_HANDLERS[command])()
            if reply is not None:
                return self._send(command, reply.to_bytes())
            status = ErrorCode.NOT_SUPPORTED
        elif command in WRITE_HANDLERS:
            name, structure = WRITE_HANDLERS[command]
            status = getattr(self.callbacks, name)(structure.from_bytes(frame.payload))
        else:
            status = ErrorCode.NOT_SUPPORTED

        code = int(status)
        if not -0x80 <= code <= 0xFF:
            logger.warning(
                "%s: status %d does not fit in one byte, sending 0x%02X",
                command_name(command), code, code & 0xFF,
            )
            code &= 0xFF
        logger.debug("%s -> status %d", command_name(command), code)
        return self._send(command, bytes([status_to_byte(code)]))

    def _send(self, command: int, payload: bytes) -> Frame:
        return decode_frame(send_frame(self.transport, command, payload, self.checksum))
