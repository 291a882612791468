"""Fixed-layout argument and reply structures."""

from .arguments import (
    Structure,
    ShutterActionArg,
    ShutterPositionArg,
    SwitchRelayArg,
    BuzzerActionArg,
)
from .replies import (
    CpuQueryReply,
    ShutterPositionReply,
    SwitchRelayReply,
    SwitchButtonReply,
)
