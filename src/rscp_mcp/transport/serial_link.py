"""Serial (UART / USB-serial bridge) transport built on pyserial."""

from __future__ import annotations

import logging
import time

import serial

from ..protocol.framing import MAX_TX_BUFFER_SIZE

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 115200
POLL_INTERVAL_S = 0.001


class SerialTransport:
    """Byte transport over a serial port.

    Usage::

        with SerialTransport("/dev/ttyUSB0") as link:
            master = Master(link)
            reply = master.query_cpu()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        poll_interval: float = POLL_INTERVAL_S,
        rx_capacity: int = MAX_TX_BUFFER_SIZE,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.poll_interval = poll_interval
        self.rx_capacity = rx_capacity
        self._serial: serial.Serial | None = None

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> SerialTransport:
        """Open the port in non-blocking mode.

        Raises:
            ConnectionError: If the port cannot be opened.
        """
        try:
            self._serial = serial.Serial(self.port, self.baudrate, timeout=0)
        except serial.SerialException as e:
            raise ConnectionError(f"Could not open {self.port}: {e}") from e
        self._serial.reset_input_buffer()
        logger.info("Opened %s at %d baud", self.port, self.baudrate)
        return self

    def close(self) -> None:
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing %s: %s", self.port, e)
        finally:
            self._serial = None
            logger.info("Closed %s", self.port)

    def __enter__(self) -> SerialTransport:
        if not self.connected:
            self.open()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def _port(self) -> serial.Serial:
        if not self.connected:
            raise ConnectionError(f"Serial port {self.port} is not open")
        return self._serial

    def try_read_byte(self) -> int | None:
        port = self._port()
        if port.in_waiting == 0:
            return None
        data = port.read(1)
        return data[0] if data else None

    def on_no_byte_available(self) -> None:
        time.sleep(self.poll_interval)

    def write(self, data: bytes) -> bool:
        port = self._port()
        written = port.write(data)
        port.flush()
        return written == len(data)

    def reserve_expected_reply(self, max_length: int) -> bool:
        return 0 < max_length <= self.rx_capacity
