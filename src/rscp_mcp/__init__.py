"""RSCP: Roller Shutter Control Panel Protocol master, slave and MCP server.

Quick start::

    from rscp_mcp import Master
    from rscp_mcp.transport.serial_link import SerialTransport

    with SerialTransport("/dev/ttyUSB0") as link:
        print(Master(link).query_cpu())
"""

from .master import Master
from .slave import Slave, SlaveCallbacks
from .protocol.errors import (
    ErrorCode,
    RSCPError,
    FrameTimeout,
    FrameOverflow,
    MalformedFrame,
    NotSupported,
    TxFailed,
    RequestFailed,
    InvalidAnswer,
)

__version__ = "0.1.0"
