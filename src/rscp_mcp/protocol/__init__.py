"""Protocol layer: framing, command codes and error taxonomy."""

from .framing import Frame, FrameDecoder, encode_frame, read_frame
from .commands import Command
from .errors import ErrorCode, RSCPError
