"""In-memory roller shutter panel, served over a loopback link.

:class:`SimulatedDevice` wires a :class:`Master` to a :class:`Slave`
backed by :class:`SimulatedPanel`. The slave is serviced from the master's
idle hook, so a whole exchange runs in one thread: the master writes its
request, polls once without data, and the hook lets the slave answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .master import Master
from .models.arguments import (
    BuzzerActionArg,
    ShutterActionArg,
    ShutterPositionArg,
    SwitchRelayArg,
)
from .models.replies import ShutterPositionReply, SwitchButtonReply, SwitchRelayReply
from .protocol.commands import (
    ButtonStatus,
    BuzzerAction,
    RelayStatus,
    ResultCode,
    ShutterAction,
)
from .protocol.errors import RSCPError
from .slave import Slave, SlaveCallbacks
from .transport.loopback import LoopbackLink

logger = logging.getLogger(__name__)

SHUTTER_COUNT = 2
POSITION_OPEN = 100
POSITION_CLOSED = 0


@dataclass
class ShutterState:
    position: int = POSITION_CLOSED
    motion: int = ShutterAction.STOP


@dataclass
class SimulatedPanel(SlaveCallbacks):
    """Panel state: shutters, one relay, one button and a buzzer log.

    Shutter positions are percentages, 0 closed and 100 open. The position
    getter reports the shutter addressed by the last shutter command.
    """

    shutter_count: int = SHUTTER_COUNT
    shutters: list[ShutterState] = field(default_factory=list)
    selected_shutter: int = 0
    relay: int = RelayStatus.OFF
    button: int = ButtonStatus.OFF
    buzzer_log: list[BuzzerActionArg] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.shutters:
            self.shutters = [ShutterState() for _ in range(self.shutter_count)]

    def press_button(self, pressed: bool = True) -> None:
        self.button = ButtonStatus.ON if pressed else ButtonStatus.OFF

    def get_shutter_position(self) -> ShutterPositionReply:
        state = self.shutters[self.selected_shutter]
        return ShutterPositionReply(shutter=self.selected_shutter, position=state.position)

    def get_switch_relay(self) -> SwitchRelayReply:
        return SwitchRelayReply(status=self.relay)

    def get_switch_button(self) -> SwitchButtonReply:
        return SwitchButtonReply(status=self.button)

    def set_shutter_action(self, arg: ShutterActionArg) -> int:
        if arg.shutter >= len(self.shutters):
            return ResultCode.NOK
        try:
            action = ShutterAction(arg.action)
        except ValueError:
            return ResultCode.NOK
        self.selected_shutter = arg.shutter
        state = self.shutters[arg.shutter]
        if action is ShutterAction.OPEN:
            state.position, state.motion = POSITION_OPEN, ShutterAction.STOP
        elif action is ShutterAction.CLOSE:
            state.position, state.motion = POSITION_CLOSED, ShutterAction.STOP
        else:
            state.motion = action
        return ResultCode.OK

    def set_shutter_position(self, arg: ShutterPositionArg) -> int:
        if arg.shutter >= len(self.shutters) or arg.position > POSITION_OPEN:
            return ResultCode.NOK
        self.selected_shutter = arg.shutter
        self.shutters[arg.shutter].position = arg.position
        return ResultCode.OK

    def set_switch_relay(self, arg: SwitchRelayArg) -> int:
        if arg.status not in (RelayStatus.ON, RelayStatus.OFF):
            return ResultCode.NOK
        self.relay = RelayStatus(arg.status)
        return ResultCode.OK

    def set_buzzer_action(self, arg: BuzzerActionArg) -> int:
        if arg.action not in (BuzzerAction.ON, BuzzerAction.OFF):
            return ResultCode.NOK
        self.buzzer_log.append(arg)
        return ResultCode.OK


class SimulatedDevice:
    """A master and a simulated panel joined by a loopback link."""

    def __init__(self, panel: SimulatedPanel | None = None, timeout_ticks: int = 10) -> None:
        self.panel = panel or SimulatedPanel()
        self.link = LoopbackLink()
        self.slave = Slave(self.link.slave, self.panel)
        self.master = Master(self.link.master, timeout_ticks=timeout_ticks)
        self.link.master.idle = self.service

    def service(self) -> None:
        """Let the slave answer whatever the master has sent so far."""
        if not self.link.slave.in_waiting:
            return
        try:
            self.slave.handle(timeout_ticks=0)
        except RSCPError as e:
            logger.warning("Simulated slave dropped request: %s", e)
