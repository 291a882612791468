"""USB HID bridge transport.

The bridge tunnels the raw byte stream in 64-byte HID reports::

    +------+----------------------+-------------+
    | Size |        Data          |   Padding   |
    | 1 B  | ``Size`` bytes <= 63 | zero to 64  |
    +------+----------------------+-------------+

Supports both ``hidapi`` (preferred) and ``pyusb`` backends. Received
reports are unpacked into a byte buffer that :meth:`try_read_byte` drains.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# STM32 Custom HID example firmware
VENDOR_ID = 0x0483
PRODUCT_ID = 0x5750
HID_INTERFACE = 0
EP_IN = 0x81
EP_OUT = 0x01
HID_REPORT_SIZE = 64
REPORT_DATA_SIZE = HID_REPORT_SIZE - 1
WRITE_TIMEOUT_MS = 1000
POLL_INTERVAL_S = 0.001


@dataclass
class DeviceInfo:
    """Basic device identification from USB descriptors."""

    vendor_id: int = VENDOR_ID
    product_id: int = PRODUCT_ID
    manufacturer: str = ""
    product: str = ""


def pack_report(data: bytes) -> bytes:
    """Wrap up to 63 stream bytes in one zero-padded HID report."""
    if len(data) > REPORT_DATA_SIZE:
        raise ValueError(
            f"At most {REPORT_DATA_SIZE} bytes fit in one report, got {len(data)}"
        )
    return bytes([len(data)]) + data + b"\x00" * (REPORT_DATA_SIZE - len(data))


def unpack_report(report: bytes) -> bytes:
    """Extract the stream bytes carried by one HID report."""
    if not report:
        return b""
    size = min(report[0], len(report) - 1, REPORT_DATA_SIZE)
    return bytes(report[1 : 1 + size])


class HidBridgeTransport:
    """Byte transport over a USB HID bridge.

    Usage::

        link = HidBridgeTransport()
        link.open()
        master = Master(link)
        link.close()
    """

    def __init__(
        self,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
        poll_interval: float = POLL_INTERVAL_S,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self.poll_interval = poll_interval
        self._device = None
        self._backend: str = ""
        self._connected = False
        self._rx: deque[int] = deque()
        self._device_info = DeviceInfo(vendor_id=vendor_id, product_id=product_id)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def open(self) -> DeviceInfo:
        """Attach to the bridge. hidapi is tried before pyusb.

        Raises:
            ConnectionError: If neither backend can claim the bridge.
        """
        errors = []
        for backend, attach in (("hidapi", self._attach_hidapi), ("pyusb", self._attach_pyusb)):
            try:
                manufacturer, product = attach()
            except Exception as e:
                errors.append(f"{backend}: {e}")
                continue
            self._backend = backend
            self._connected = True
            self._rx.clear()
            self._device_info = DeviceInfo(
                self._vendor_id, self._product_id, manufacturer or "", product or ""
            )
            logger.info(
                "HID bridge %04x:%04x attached over %s (%s %s)",
                self._vendor_id, self._product_id, backend, manufacturer, product,
            )
            return self._device_info
        raise ConnectionError(
            f"No RSCP HID bridge at {self._vendor_id:04x}:{self._product_id:04x} "
            f"({'; '.join(errors)})"
        )

    def _attach_hidapi(self) -> tuple[str, str]:
        import hid

        device = hid.device()
        device.open(self._vendor_id, self._product_id)
        device.set_nonblocking(True)
        self._device = device
        return device.get_manufacturer_string(), device.get_product_string()

    def _attach_pyusb(self) -> tuple[str, str]:
        import usb.core
        import usb.util

        device = usb.core.find(idVendor=self._vendor_id, idProduct=self._product_id)
        if device is None:
            raise ConnectionError("bridge not enumerated")
        if device.is_kernel_driver_active(HID_INTERFACE):
            device.detach_kernel_driver(HID_INTERFACE)
        usb.util.claim_interface(device, HID_INTERFACE)
        self._device = device
        return (
            usb.util.get_string(device, device.iManufacturer),
            usb.util.get_string(device, device.iProduct),
        )

    def close(self) -> None:
        """Release the bridge and drop any buffered bytes."""
        if not self._connected:
            return
        try:
            if self._backend == "pyusb":
                import usb.util

                usb.util.release_interface(self._device, HID_INTERFACE)
            else:
                self._device.close()
        except Exception as e:
            logger.warning("HID bridge release failed: %s", e)
        finally:
            dropped = len(self._rx)
            self._device = None
            self._connected = False
            self._rx.clear()
            logger.info("HID bridge detached, %d unread bytes dropped", dropped)

    def _read_report(self) -> bytes | None:
        if self._backend == "hidapi":
            data = self._device.read(HID_REPORT_SIZE)
            return bytes(data) if data else None

        import usb.core

        try:
            return bytes(self._device.read(EP_IN, HID_REPORT_SIZE, timeout=1))
        except usb.core.USBTimeoutError:
            return None

    def try_read_byte(self) -> int | None:
        if not self._connected:
            raise ConnectionError("HID bridge is not attached")
        if not self._rx:
            report = self._read_report()
            if report is not None:
                self._rx.extend(unpack_report(report))
        if self._rx:
            return self._rx.popleft()
        return None

    def on_no_byte_available(self) -> None:
        time.sleep(self.poll_interval)

    def write(self, data: bytes) -> bool:
        """Send one frame, split over as many reports as needed."""
        if not self._connected:
            raise ConnectionError("HID bridge is not attached")
        for offset in range(0, len(data), REPORT_DATA_SIZE):
            report = pack_report(data[offset : offset + REPORT_DATA_SIZE])
            if self._backend == "hidapi":
                written = self._device.write(report)
            else:
                written = self._device.write(EP_OUT, report, timeout=WRITE_TIMEOUT_MS)
            if written < HID_REPORT_SIZE:
                logger.debug("Short HID write: %d of %d bytes", written, HID_REPORT_SIZE)
                return False
        return True

    def reserve_expected_reply(self, max_length: int) -> bool:
        """Replies must arrive in a single report."""
        return 0 < max_length <= REPORT_DATA_SIZE
